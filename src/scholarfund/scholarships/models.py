"""SQLAlchemy models for scholarship awards and their approvals."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scholarfund.common.models import Base, TimestampMixin, generate_uuid, utcnow

REQUIRED_APPROVALS = 2

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_DISBURSED = "disbursed"
STATUS_CANCELLED = "cancelled"

SCHOLARSHIP_STATUSES: frozenset[str] = frozenset({
    STATUS_PENDING,
    STATUS_APPROVED,
    STATUS_DISBURSED,
    STATUS_CANCELLED,
})

# Awarded but not yet paid out
COMMITTED_STATUSES: tuple[str, ...] = (STATUS_PENDING, STATUS_APPROVED)

INSURANCE_SITUATIONS: frozenset[str] = frozenset({
    "no_insurance",
    "high_deductible",
    "not_accepted",
    "partial_coverage",
    "other",
})

PURPOSES: frozenset[str] = frozenset({
    "deductible",
    "copay",
    "no_insurance",
    "preferred_center",
    "other",
})


class ScholarshipModel(Base, TimestampMixin):
    __tablename__ = "scholarships"
    __table_args__ = (
        UniqueConstraint("scholarship_code", name="uq_scholarship_code"),
        CheckConstraint("amount > 0", name="ck_scholarship_amount_positive"),
        CheckConstraint(
            f"approval_count >= 0 AND approval_count <= {REQUIRED_APPROVALS}",
            name="ck_scholarship_approval_count_range",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    scholarship_code: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    client_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clients.id"), nullable=False, index=True
    )
    treatment_center_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("treatment_centers.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    award_date: Mapped[date] = mapped_column(Date, nullable=False)
    insurance_situation: Mapped[str] = mapped_column(String(30), nullable=False)
    purpose: Mapped[str] = mapped_column(String(30), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Advanced by the approval workflow; disbursement is recorded elsewhere
    status: Mapped[str] = mapped_column(
        String(20), default=STATUS_PENDING, nullable=False, index=True
    )
    approval_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    approvals: Mapped[list["ScholarshipApprovalModel"]] = relationship(
        back_populates="scholarship", order_by="ScholarshipApprovalModel.approved_at",
    )


class ScholarshipApprovalModel(Base):
    __tablename__ = "scholarship_approvals"
    __table_args__ = (
        UniqueConstraint(
            "scholarship_id", "approver_id", name="uq_approval_scholarship_approver"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    scholarship_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("scholarships.id"), nullable=False, index=True
    )
    approver_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    scholarship: Mapped["ScholarshipModel"] = relationship(back_populates="approvals")
