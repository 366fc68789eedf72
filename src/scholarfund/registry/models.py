"""SQLAlchemy models for beneficiaries and treatment providers."""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from scholarfund.common.models import Base, TimestampMixin, generate_uuid


class ClientModel(Base, TimestampMixin):
    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    client_ref_1: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    client_ref_2: Mapped[str | None] = mapped_column(String(64), nullable=True)
    client_ref_3: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    # Clients are deactivated, never deleted: scholarships reference them
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    @property
    def reference_codes(self) -> list[str]:
        return [
            ref for ref in (self.client_ref_1, self.client_ref_2, self.client_ref_3)
            if ref
        ]


class TreatmentCenterModel(Base, TimestampMixin):
    __tablename__ = "treatment_centers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), default="")
    state: Mapped[str] = mapped_column(String(50), default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
