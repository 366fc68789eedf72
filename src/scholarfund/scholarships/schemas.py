"""Pydantic schemas for scholarship endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

InsuranceSituation = Literal[
    "no_insurance", "high_deductible", "not_accepted", "partial_coverage", "other",
]
Purpose = Literal["deductible", "copay", "no_insurance", "preferred_center", "other"]


class ScholarshipCreate(BaseModel):
    # No status or approval_count: new awards start pending with zero approvals
    client_id: str
    treatment_center_id: str
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    award_date: date
    insurance_situation: InsuranceSituation
    purpose: Purpose
    notes: Optional[str] = None


class ScholarshipResponse(BaseModel):
    id: str
    scholarship_code: str
    client_id: str
    treatment_center_id: str
    amount: Decimal
    award_date: date
    insurance_situation: str
    purpose: str
    notes: Optional[str] = None
    status: str
    approval_count: int
    created_by: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ApprovalCreate(BaseModel):
    comment: Optional[str] = None


class ApprovalResponse(BaseModel):
    id: str
    scholarship_id: str
    approver_id: str
    comment: Optional[str] = None
    approved_at: datetime

    model_config = {"from_attributes": True}


class ApprovalOutcome(BaseModel):
    scholarship_id: str
    scholarship_code: str
    approval_count: int
    required_approvals: int
    status: str


class ScholarshipDetail(ScholarshipResponse):
    approvals: list[ApprovalResponse] = []
