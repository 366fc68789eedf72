"""Pydantic schemas for donation and report endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

DonationMethod = Literal["cash", "check", "credit_card", "ach", "wire", "other"]


class DonationCreate(BaseModel):
    donor_name: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    donation_date: date
    donation_method: DonationMethod
    check_number: Optional[str] = Field(None, max_length=50)
    donor_email: Optional[EmailStr] = None
    donor_phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class DonationResponse(BaseModel):
    id: str
    donor_name: str
    amount: Decimal
    donation_date: date
    donation_method: str
    check_number: Optional[str] = None
    donor_email: Optional[str] = None
    donor_phone: Optional[str] = None
    notes: Optional[str] = None
    receipt_sent: bool
    created_by: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class FinancialSummary(BaseModel):
    total_donations: Decimal
    total_disbursed: Decimal
    pending_commitments: Decimal
    available_balance: Decimal


class DeidentifiedStats(BaseModel):
    total_scholarships: int
    total_awarded: Decimal
    average_award: Decimal
    by_insurance_situation: dict[str, int]
