"""SQLAlchemy model for donations."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Date, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from scholarfund.common.models import Base, TimestampMixin, generate_uuid

DONATION_METHODS: frozenset[str] = frozenset({
    "cash",
    "check",
    "credit_card",
    "ach",
    "wire",
    "other",
})


class DonationModel(Base, TimestampMixin):
    __tablename__ = "donations"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_donation_amount_positive"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    donor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    donation_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    donation_method: Mapped[str] = mapped_column(String(20), nullable=False)
    check_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    donor_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    donor_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    receipt_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
