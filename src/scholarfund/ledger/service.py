"""Ledger service — donations and the derived financial projections."""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scholarfund.audit.models import AuditAction
from scholarfund.common.config import ScholarFundSettings
from scholarfund.common.exceptions import ValidationError
from scholarfund.common.security import Principal
from scholarfund.common.validators import (
    CENT,
    optional_text,
    parse_amount,
    parse_date,
    require_choice,
    require_text,
)
from scholarfund.ledger.models import DONATION_METHODS, DonationModel
from scholarfund.scholarships.models import (
    COMMITTED_STATUSES,
    STATUS_DISBURSED,
    ScholarshipModel,
)


def _money(value: Any) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


def _sum_of(column, *criteria):
    return (
        select(func.coalesce(func.sum(column), 0))
        .where(*criteria)
        .scalar_subquery()
    )


class LedgerService:
    """Donation records and read-only financial views."""

    def __init__(self, settings: ScholarFundSettings, audit_service=None):
        self.settings = settings
        self.audit_service = audit_service

    # ── Donations ──

    async def record_donation(
        self,
        session: AsyncSession,
        principal: Principal,
        donor_name: str,
        amount: Decimal | str | float,
        donation_date: date | str,
        donation_method: str,
        check_number: str | None = None,
        donor_email: str | None = None,
        donor_phone: str | None = None,
        notes: str | None = None,
    ) -> DonationModel:
        donor_name = require_text(donor_name, "donor_name")
        amount = parse_amount(amount)
        donation_date = parse_date(donation_date, "donation_date")
        require_choice(donation_method, DONATION_METHODS, "donation_method")
        check_number = optional_text(check_number)
        if donation_method == "check" and check_number is None:
            raise ValidationError("check_number is required for check donations")

        donation = DonationModel(
            donor_name=donor_name,
            amount=amount,
            donation_date=donation_date,
            donation_method=donation_method,
            check_number=check_number,
            donor_email=optional_text(donor_email),
            donor_phone=optional_text(donor_phone),
            notes=optional_text(notes),
            receipt_sent=False,
            created_by=principal.id,
        )
        session.add(donation)
        await session.flush()

        if self.audit_service:
            await self.audit_service.record(
                session, principal.id, AuditAction.CREATE, "donation", donation.id,
                {"action": "Donation recorded", "amount": str(amount), "donor": donor_name},
            )
        return donation

    async def list_donations(
        self, session: AsyncSession, limit: int = 50, offset: int = 0,
    ) -> list[DonationModel]:
        result = await session.execute(
            select(DonationModel)
            .order_by(DonationModel.donation_date.desc(), DonationModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Projections ──

    async def get_financial_summary(self, session: AsyncSession) -> dict[str, Decimal]:
        """Fund position from one SELECT, so every figure sees the same snapshot."""
        result = await session.execute(
            select(
                _sum_of(DonationModel.amount).label("total_donations"),
                _sum_of(
                    ScholarshipModel.amount,
                    ScholarshipModel.status == STATUS_DISBURSED,
                ).label("total_disbursed"),
                _sum_of(
                    ScholarshipModel.amount,
                    ScholarshipModel.status.in_(COMMITTED_STATUSES),
                ).label("pending_commitments"),
            )
        )
        row = result.one()
        total_donations = _money(row.total_donations)
        total_disbursed = _money(row.total_disbursed)
        pending_commitments = _money(row.pending_commitments)
        return {
            "total_donations": total_donations,
            "total_disbursed": total_disbursed,
            "pending_commitments": pending_commitments,
            "available_balance": total_donations - total_disbursed - pending_commitments,
        }

    async def get_deidentified_stats(
        self, session: AsyncSession, principal: Principal,
    ) -> dict[str, Any]:
        """Aggregate award statistics with no client-identifying fields."""
        result = await session.execute(
            select(
                ScholarshipModel.insurance_situation,
                func.count(ScholarshipModel.id).label("awards"),
                func.coalesce(func.sum(ScholarshipModel.amount), 0).label("total"),
            ).group_by(ScholarshipModel.insurance_situation)
        )
        by_insurance: dict[str, int] = {}
        total_count = 0
        total_amount = Decimal("0.00")
        for row in result:
            by_insurance[row.insurance_situation] = row.awards
            total_count += row.awards
            total_amount += _money(row.total)

        average = (total_amount / total_count).quantize(CENT) if total_count else Decimal("0.00")

        if self.audit_service:
            await self.audit_service.record(
                session, principal.id, AuditAction.VIEW, "report", None,
                {"action": "Report generated", "report_type": "de-identified"},
            )
        return {
            "total_scholarships": total_count,
            "total_awarded": total_amount,
            "average_award": average,
            "by_insurance_situation": by_insurance,
        }
