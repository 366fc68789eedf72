"""Tests for the scholarship workflow — creation and dual approval."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from scholarfund.audit.models import AuditAction
from scholarfund.common.exceptions import (
    AlreadyApprovedError,
    AlreadyFinalError,
    ForbiddenError,
    IdentifierConflictError,
    NotFoundError,
    ReferenceNotFoundError,
    ValidationError,
)
from scholarfund.scholarships.models import (
    ScholarshipApprovalModel,
    ScholarshipModel,
)


async def _create(db, scholarship_svc, principal, client_id, center_id, **overrides):
    kwargs = {
        "client_id": client_id,
        "treatment_center_id": center_id,
        "amount": "500.00",
        "award_date": "2024-03-15",
        "insurance_situation": "no_insurance",
        "purpose": "deductible",
    }
    kwargs.update(overrides)
    async with db.get_session() as session:
        return await scholarship_svc.create_scholarship(session, principal, **kwargs)


async def _approve(db, scholarship_svc, scholarship_id, approver, comment=None):
    async with db.get_session() as session:
        return await scholarship_svc.record_approval(
            session, scholarship_id, approver, comment=comment,
        )


async def _approval_rows(db, scholarship_id) -> int:
    async with db.get_session() as session:
        result = await session.execute(
            select(func.count(ScholarshipApprovalModel.id)).where(
                ScholarshipApprovalModel.scholarship_id == scholarship_id
            )
        )
        return result.scalar_one()


async def _reload(db, scholarship_svc, scholarship_id):
    async with db.get_session() as session:
        return await scholarship_svc.get_scholarship(session, scholarship_id)


# ── Creation ──


class TestCreateScholarship:
    async def test_new_award_is_pending_with_no_approvals(self, scholarship):
        assert scholarship.scholarship_code == "ABC123-20240315"
        assert scholarship.status == "pending"
        assert scholarship.approval_count == 0
        assert scholarship.amount == Decimal("500.00")

    async def test_code_uses_all_reference_codes(
        self, db, registry_svc, scholarship_svc, staff, center_record,
    ):
        async with db.get_session() as session:
            multi = await registry_svc.create_client(
                session, staff["dave"], "AB", client_ref_2="CD", client_ref_3="EF",
            )
        s = await _create(db, scholarship_svc, staff["dave"], multi.id, center_record.id)
        assert s.scholarship_code == "AB-CD-EF-20240315"

    async def test_same_client_same_day_gets_suffix(
        self, db, scholarship_svc, staff, client_record, center_record, scholarship,
    ):
        second = await _create(
            db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
        )
        third = await _create(
            db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
        )
        assert second.scholarship_code == "ABC123-20240315-2"
        assert third.scholarship_code == "ABC123-20240315-3"

    async def test_creation_is_audited(self, db, audit_svc, scholarship):
        async with db.get_session() as session:
            events = await audit_svc.get_events(
                session, resource_type="scholarship", resource_id=scholarship.id,
            )
        assert len(events) == 1
        assert events[0].action == AuditAction.CREATE
        assert events[0].detail["scholarship_code"] == "ABC123-20240315"
        assert events[0].detail["amount"] == "500.00"

    @pytest.mark.parametrize("amount", ["0", "-5", "12.345", "lots"])
    async def test_invalid_amount(
        self, db, scholarship_svc, staff, client_record, center_record, amount,
    ):
        with pytest.raises(ValidationError):
            await _create(
                db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
                amount=amount,
            )

    async def test_unknown_insurance_situation(
        self, db, scholarship_svc, staff, client_record, center_record,
    ):
        with pytest.raises(ValidationError, match="insurance_situation"):
            await _create(
                db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
                insurance_situation="lottery",
            )

    async def test_unknown_purpose(
        self, db, scholarship_svc, staff, client_record, center_record,
    ):
        with pytest.raises(ValidationError, match="purpose"):
            await _create(
                db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
                purpose="vacation",
            )

    async def test_missing_client(self, db, scholarship_svc, staff, center_record):
        with pytest.raises(ReferenceNotFoundError, match="Client"):
            await _create(db, scholarship_svc, staff["dave"], "nope", center_record.id)

    async def test_missing_center(self, db, scholarship_svc, staff, client_record):
        with pytest.raises(ReferenceNotFoundError, match="Treatment center"):
            await _create(db, scholarship_svc, staff["dave"], client_record.id, "nope")

    async def test_inactive_client_rejected(
        self, db, registry_svc, scholarship_svc, staff, client_record, center_record,
    ):
        async with db.get_session() as session:
            await registry_svc.deactivate_client(session, staff["dave"], client_record.id)
        with pytest.raises(ReferenceNotFoundError):
            await _create(
                db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
            )

    async def test_inactive_center_rejected(
        self, db, registry_svc, scholarship_svc, staff, client_record, center_record,
    ):
        async with db.get_session() as session:
            await registry_svc.deactivate_center(session, staff["dave"], center_record.id)
        with pytest.raises(ReferenceNotFoundError):
            await _create(
                db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
            )

    async def test_failed_creation_writes_nothing(
        self, db, scholarship_svc, staff, client_record, center_record,
    ):
        with pytest.raises(ValidationError):
            await _create(
                db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
                amount="0",
            )
        async with db.get_session() as session:
            count = (await session.execute(select(func.count(ScholarshipModel.id)))).scalar_one()
        assert count == 0

    async def test_code_race_raises_conflict(
        self, db, scholarship_svc, staff, client_record, center_record, scholarship,
        monkeypatch,
    ):
        async def stale_lookup(session, base_code):
            return base_code

        monkeypatch.setattr(scholarship_svc, "_next_free_code", stale_lookup)
        with pytest.raises(IdentifierConflictError) as excinfo:
            await _create(
                db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
            )
        assert isinstance(excinfo.value.__cause__, IntegrityError)
        async with db.get_session() as session:
            count = (await session.execute(select(func.count(ScholarshipModel.id)))).scalar_one()
        assert count == 1

    async def test_other_integrity_errors_are_not_conflicts(
        self, db, scholarship_svc, staff, client_record, center_record, monkeypatch,
    ):
        # Skip input validation so the amount CHECK constraint fires instead
        monkeypatch.setattr(
            "scholarfund.scholarships.service.parse_amount", lambda value: Decimal("-5.00"),
        )
        with pytest.raises(IntegrityError, match="CHECK constraint failed"):
            await _create(
                db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
            )
        async with db.get_session() as session:
            count = (await session.execute(select(func.count(ScholarshipModel.id)))).scalar_one()
        assert count == 0


# ── Approval ──


class TestRecordApproval:
    async def test_scenario_two_approvals(self, db, scholarship_svc, staff, scholarship):
        first = await _approve(db, scholarship_svc, scholarship.id, staff["alice"])
        assert first["approval_count"] == 1
        assert first["status"] == "pending"
        assert first["required_approvals"] == 2

        second = await _approve(db, scholarship_svc, scholarship.id, staff["bob"])
        assert second["approval_count"] == 2
        assert second["status"] == "approved"
        assert second["scholarship_code"] == "ABC123-20240315"
        assert await _approval_rows(db, scholarship.id) == 2

    async def test_scenario_duplicate_approver(self, db, scholarship_svc, staff, scholarship):
        await _approve(db, scholarship_svc, scholarship.id, staff["alice"])
        with pytest.raises(AlreadyApprovedError):
            await _approve(db, scholarship_svc, scholarship.id, staff["alice"])

        reloaded = await _reload(db, scholarship_svc, scholarship.id)
        assert reloaded.approval_count == 1
        assert reloaded.status == "pending"
        assert await _approval_rows(db, scholarship.id) == 1

    async def test_scenario_admin_cannot_approve(self, db, scholarship_svc, staff, scholarship):
        with pytest.raises(ForbiddenError):
            await _approve(db, scholarship_svc, scholarship.id, staff["dave"])
        reloaded = await _reload(db, scholarship_svc, scholarship.id)
        assert reloaded.approval_count == 0
        assert await _approval_rows(db, scholarship.id) == 0

    async def test_role_checked_before_existence(self, db, scholarship_svc, staff):
        with pytest.raises(ForbiddenError):
            await _approve(db, scholarship_svc, "missing", staff["dave"])

    async def test_unknown_scholarship(self, db, scholarship_svc, staff):
        with pytest.raises(NotFoundError):
            await _approve(db, scholarship_svc, "missing", staff["alice"])

    async def test_third_approver_rejected(self, db, scholarship_svc, staff, scholarship):
        await _approve(db, scholarship_svc, scholarship.id, staff["alice"])
        await _approve(db, scholarship_svc, scholarship.id, staff["bob"])
        with pytest.raises(AlreadyFinalError):
            await _approve(db, scholarship_svc, scholarship.id, staff["carol"])

        reloaded = await _reload(db, scholarship_svc, scholarship.id)
        assert reloaded.approval_count == 2
        assert reloaded.status == "approved"
        assert await _approval_rows(db, scholarship.id) == 2

    async def test_approver_who_already_approved_gets_already_approved(
        self, db, scholarship_svc, staff, scholarship,
    ):
        await _approve(db, scholarship_svc, scholarship.id, staff["alice"])
        await _approve(db, scholarship_svc, scholarship.id, staff["bob"])
        with pytest.raises(AlreadyApprovedError):
            await _approve(db, scholarship_svc, scholarship.id, staff["alice"])

    async def test_cancelled_award_not_approvable(self, db, scholarship_svc, staff, scholarship):
        async with db.get_session() as session:
            row = await session.get(ScholarshipModel, scholarship.id)
            row.status = "cancelled"
        with pytest.raises(AlreadyFinalError):
            await _approve(db, scholarship_svc, scholarship.id, staff["alice"])
        assert await _approval_rows(db, scholarship.id) == 0

    async def test_unique_constraint_backs_the_precheck(
        self, db, scholarship_svc, staff, scholarship, monkeypatch,
    ):
        await _approve(db, scholarship_svc, scholarship.id, staff["alice"])

        async def never_approved(session, scholarship_id, approver_id):
            return False

        monkeypatch.setattr(scholarship_svc, "has_approved", never_approved)
        with pytest.raises(AlreadyApprovedError):
            await _approve(db, scholarship_svc, scholarship.id, staff["alice"])

        reloaded = await _reload(db, scholarship_svc, scholarship.id)
        assert reloaded.approval_count == 1
        assert await _approval_rows(db, scholarship.id) == 1

    async def test_approval_comment_stored(self, db, scholarship_svc, staff, scholarship):
        await _approve(db, scholarship_svc, scholarship.id, staff["alice"], comment=" ok ")
        async with db.get_session() as session:
            approvals = await scholarship_svc.list_approvals(session, scholarship.id)
        assert len(approvals) == 1
        assert approvals[0].approver_id == staff["alice"].id
        assert approvals[0].comment == "ok"

    async def test_approvals_are_audited(self, db, audit_svc, scholarship_svc, staff, scholarship):
        await _approve(db, scholarship_svc, scholarship.id, staff["alice"])
        await _approve(db, scholarship_svc, scholarship.id, staff["bob"])
        async with db.get_session() as session:
            events = await audit_svc.get_events(
                session, resource_id=scholarship.id, action=AuditAction.APPROVE,
            )
        assert len(events) == 2
        counts = sorted(e.detail["approval_count"] for e in events)
        assert counts == [1, 2]
        assert {e.detail["approver"] for e in events} == {"Alice Approver", "Bob Approver"}

    async def test_count_matches_rows_and_never_regresses(
        self, db, scholarship_svc, staff, scholarship,
    ):
        seen_statuses = []
        for approver in ("alice", "bob", "carol", "alice"):
            try:
                await _approve(db, scholarship_svc, scholarship.id, staff[approver])
            except (AlreadyApprovedError, AlreadyFinalError):
                pass
            reloaded = await _reload(db, scholarship_svc, scholarship.id)
            assert reloaded.approval_count == await _approval_rows(db, scholarship.id)
            assert reloaded.approval_count <= 2
            seen_statuses.append(reloaded.status)
        assert seen_statuses == ["pending", "approved", "approved", "approved"]


# ── Reads ──


class TestScholarshipReads:
    async def test_get_with_approvals(self, db, scholarship_svc, staff, scholarship):
        await _approve(db, scholarship_svc, scholarship.id, staff["alice"])
        async with db.get_session() as session:
            detail = await scholarship_svc.get_scholarship(
                session, scholarship.id, with_approvals=True,
            )
            assert len(detail.approvals) == 1

    async def test_list_filters_by_status(self, db, scholarship_svc, staff, scholarship):
        await _approve(db, scholarship_svc, scholarship.id, staff["alice"])
        await _approve(db, scholarship_svc, scholarship.id, staff["bob"])
        async with db.get_session() as session:
            approved = await scholarship_svc.list_scholarships(session, status="approved")
            pending = await scholarship_svc.list_scholarships(session, status="pending")
        assert [s.id for s in approved] == [scholarship.id]
        assert pending == []

    async def test_list_rejects_unknown_status(self, db, scholarship_svc, scholarship):
        async with db.get_session() as session:
            with pytest.raises(ValidationError):
                await scholarship_svc.list_scholarships(session, status="lost")

    async def test_pending_queue_excludes_approved(
        self, db, scholarship_svc, staff, client_record, center_record, scholarship,
    ):
        other = await _create(
            db, scholarship_svc, staff["dave"], client_record.id, center_record.id,
            award_date="2024-04-01",
        )
        await _approve(db, scholarship_svc, scholarship.id, staff["alice"])
        await _approve(db, scholarship_svc, scholarship.id, staff["bob"])
        async with db.get_session() as session:
            queue = await scholarship_svc.list_pending(session)
        assert [s.id for s in queue] == [other.id]

    async def test_list_approvals_unknown_scholarship(self, db, scholarship_svc):
        async with db.get_session() as session:
            with pytest.raises(NotFoundError):
                await scholarship_svc.list_approvals(session, "missing")
