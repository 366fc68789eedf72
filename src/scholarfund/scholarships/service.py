"""Scholarship service — award creation and the two-person approval workflow."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scholarfund.audit.models import AuditAction
from scholarfund.common.config import ScholarFundSettings
from scholarfund.common.database import is_unique_violation
from scholarfund.common.exceptions import (
    AlreadyApprovedError,
    AlreadyFinalError,
    ForbiddenError,
    IdentifierConflictError,
    NotFoundError,
    ReferenceNotFoundError,
)
from scholarfund.common.security import Principal
from scholarfund.common.validators import (
    optional_text,
    parse_amount,
    parse_date,
    require_choice,
)
from scholarfund.registry.service import RegistryService
from scholarfund.scholarships.identifiers import (
    DELIMITER,
    generate_scholarship_code,
    with_sequence_suffix,
)
from scholarfund.scholarships.models import (
    INSURANCE_SITUATIONS,
    PURPOSES,
    REQUIRED_APPROVALS,
    SCHOLARSHIP_STATUSES,
    STATUS_APPROVED,
    STATUS_PENDING,
    ScholarshipApprovalModel,
    ScholarshipModel,
)

logger = logging.getLogger(__name__)


class ScholarshipService:
    """Owns the scholarship and approval lifecycles.

    ``status`` and ``approval_count`` are only ever written here. The count
    moves through a conditional UPDATE evaluated by the database, so two
    approvers racing on the same award are both counted and the count can
    never pass ``REQUIRED_APPROVALS``.
    """

    def __init__(
        self,
        settings: ScholarFundSettings,
        registry: RegistryService,
        audit_service=None,
    ):
        self.settings = settings
        self.registry = registry
        self.audit_service = audit_service

    # ── Creation ──

    async def create_scholarship(
        self,
        session: AsyncSession,
        principal: Principal,
        client_id: str,
        treatment_center_id: str,
        amount: Decimal | str | float,
        award_date: date | str,
        insurance_situation: str,
        purpose: str,
        notes: str | None = None,
    ) -> ScholarshipModel:
        """Create a pending award with no approvals."""
        amount = parse_amount(amount)
        award_date = parse_date(award_date, "award_date")
        require_choice(insurance_situation, INSURANCE_SITUATIONS, "insurance_situation")
        require_choice(purpose, PURPOSES, "purpose")

        client = await self.registry.get_active_client(session, client_id)
        if client is None:
            raise ReferenceNotFoundError("Client not found or inactive")
        center = await self.registry.get_active_center(session, treatment_center_id)
        if center is None:
            raise ReferenceNotFoundError("Treatment center not found or inactive")

        base_code = generate_scholarship_code(client.reference_codes, award_date)
        code = await self._next_free_code(session, base_code)

        scholarship = ScholarshipModel(
            scholarship_code=code,
            client_id=client.id,
            treatment_center_id=center.id,
            amount=amount,
            award_date=award_date,
            insurance_situation=insurance_situation,
            purpose=purpose,
            notes=optional_text(notes),
            status=STATUS_PENDING,
            approval_count=0,
            created_by=principal.id,
        )
        session.add(scholarship)
        try:
            await session.flush()
        except IntegrityError as exc:
            # Another award took the same code between the lookup and the insert
            if is_unique_violation(exc, "uq_scholarship_code", "scholarships.scholarship_code"):
                raise IdentifierConflictError() from exc
            raise

        if self.audit_service:
            await self.audit_service.record(
                session, principal.id, AuditAction.CREATE, "scholarship", scholarship.id,
                {
                    "action": "Scholarship created",
                    "scholarship_code": code,
                    "amount": str(amount),
                },
            )
        logger.info(
            "Scholarship %s created", code,
            extra={"context": {"scholarship_id": scholarship.id, "actor_id": principal.id}},
        )
        return scholarship

    async def _next_free_code(self, session: AsyncSession, base_code: str) -> str:
        result = await session.execute(
            select(ScholarshipModel.scholarship_code).where(
                or_(
                    ScholarshipModel.scholarship_code == base_code,
                    ScholarshipModel.scholarship_code.startswith(
                        base_code + DELIMITER, autoescape=True
                    ),
                )
            )
        )
        return with_sequence_suffix(base_code, result.scalars().all())

    # ── Approval ──

    async def record_approval(
        self,
        session: AsyncSession,
        scholarship_id: str,
        approver: Principal,
        comment: str | None = None,
    ) -> dict[str, Any]:
        """Record one super admin's approval and advance the award if it is the second.

        The approval row, the counter increment and the status flip share the
        caller's transaction; any failure rolls all of them back.
        """
        if not approver.is_super_admin:
            raise ForbiddenError("Only Super Admins can approve scholarships")

        scholarship = await self.get_scholarship(session, scholarship_id)
        if scholarship is None:
            raise NotFoundError("Scholarship not found")

        if await self.has_approved(session, scholarship_id, approver.id):
            raise AlreadyApprovedError()
        if (
            scholarship.status != STATUS_PENDING
            or scholarship.approval_count >= REQUIRED_APPROVALS
        ):
            raise AlreadyFinalError(
                f"Scholarship is {scholarship.status} and no longer accepts approvals"
            )

        approval = ScholarshipApprovalModel(
            scholarship_id=scholarship_id,
            approver_id=approver.id,
            comment=optional_text(comment),
        )
        session.add(approval)
        try:
            await session.flush()
        except IntegrityError as exc:
            # A concurrent request by the same approver won
            if is_unique_violation(
                exc,
                "uq_approval_scholarship_approver",
                "scholarship_approvals.scholarship_id",
                "scholarship_approvals.approver_id",
            ):
                raise AlreadyApprovedError() from exc
            raise

        result = await session.execute(
            update(ScholarshipModel)
            .where(
                ScholarshipModel.id == scholarship_id,
                ScholarshipModel.status == STATUS_PENDING,
                ScholarshipModel.approval_count < REQUIRED_APPROVALS,
            )
            .values(approval_count=ScholarshipModel.approval_count + 1)
            .returning(ScholarshipModel.approval_count)
            .execution_options(synchronize_session=False)
        )
        approval_count = result.scalar_one_or_none()
        if approval_count is None:
            # Other approvers completed it after our snapshot was taken
            raise AlreadyFinalError()

        if approval_count >= REQUIRED_APPROVALS:
            await session.execute(
                update(ScholarshipModel)
                .where(
                    ScholarshipModel.id == scholarship_id,
                    ScholarshipModel.status == STATUS_PENDING,
                )
                .values(status=STATUS_APPROVED)
                .execution_options(synchronize_session=False)
            )

        await session.refresh(scholarship)

        if self.audit_service:
            await self.audit_service.record(
                session, approver.id, AuditAction.APPROVE, "scholarship", scholarship_id,
                {
                    "action": "Scholarship approved",
                    "approver": approver.display_name,
                    "approval_count": scholarship.approval_count,
                    "status": scholarship.status,
                },
            )
        logger.info(
            "Scholarship %s approval %d/%d",
            scholarship.scholarship_code, scholarship.approval_count, REQUIRED_APPROVALS,
            extra={"context": {"scholarship_id": scholarship_id, "approver_id": approver.id}},
        )

        return {
            "scholarship_id": scholarship.id,
            "scholarship_code": scholarship.scholarship_code,
            "approval_count": scholarship.approval_count,
            "required_approvals": REQUIRED_APPROVALS,
            "status": scholarship.status,
        }

    async def has_approved(
        self, session: AsyncSession, scholarship_id: str, approver_id: str,
    ) -> bool:
        result = await session.execute(
            select(ScholarshipApprovalModel.id).where(
                ScholarshipApprovalModel.scholarship_id == scholarship_id,
                ScholarshipApprovalModel.approver_id == approver_id,
            )
        )
        return result.first() is not None

    # ── Read ──

    async def get_scholarship(
        self, session: AsyncSession, scholarship_id: str, with_approvals: bool = False,
    ) -> ScholarshipModel | None:
        if not with_approvals:
            return await session.get(ScholarshipModel, scholarship_id)
        result = await session.execute(
            select(ScholarshipModel)
            .options(selectinload(ScholarshipModel.approvals))
            .where(ScholarshipModel.id == scholarship_id)
        )
        return result.scalar_one_or_none()

    async def list_scholarships(
        self,
        session: AsyncSession,
        status: str | None = None,
        client_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ScholarshipModel]:
        """Scholarships newest first."""
        query = select(ScholarshipModel)
        if status is not None:
            require_choice(status, SCHOLARSHIP_STATUSES, "status")
            query = query.where(ScholarshipModel.status == status)
        if client_id is not None:
            query = query.where(ScholarshipModel.client_id == client_id)
        query = (
            query.order_by(ScholarshipModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(query)
        return list(result.scalars().all())

    async def list_pending(self, session: AsyncSession) -> list[ScholarshipModel]:
        """The approval queue, oldest first."""
        result = await session.execute(
            select(ScholarshipModel)
            .where(ScholarshipModel.status == STATUS_PENDING)
            .order_by(ScholarshipModel.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_approvals(
        self, session: AsyncSession, scholarship_id: str,
    ) -> list[ScholarshipApprovalModel]:
        if await self.get_scholarship(session, scholarship_id) is None:
            raise NotFoundError("Scholarship not found")
        result = await session.execute(
            select(ScholarshipApprovalModel)
            .where(ScholarshipApprovalModel.scholarship_id == scholarship_id)
            .order_by(ScholarshipApprovalModel.approved_at.asc())
        )
        return list(result.scalars().all())
