"""Pydantic schemas for client and treatment center endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ── Clients ──

class ClientCreate(BaseModel):
    client_ref_1: str = Field(..., min_length=1, max_length=64)
    client_ref_2: Optional[str] = Field(None, max_length=64)
    client_ref_3: Optional[str] = Field(None, max_length=64)
    notes: Optional[str] = None


class ClientResponse(BaseModel):
    id: str
    client_ref_1: str
    client_ref_2: Optional[str] = None
    client_ref_3: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime
    scholarship_count: int = 0

    model_config = {"from_attributes": True}


# ── Treatment centers ──

class CenterCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    city: str = Field("", max_length=100)
    state: str = Field("", max_length=50)


class CenterResponse(BaseModel):
    id: str
    name: str
    city: str
    state: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
