"""Pydantic schemas for session and user endpoints."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

Role = Literal["admin", "super_admin"]


class SessionOpen(BaseModel):
    email: EmailStr


class PrincipalResponse(BaseModel):
    id: str
    display_name: str
    role: str


class SessionResponse(BaseModel):
    token: str
    expires_in: int
    principal: PrincipalResponse


class UserCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: Role = "admin"


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class UserResponse(BaseModel):
    id: str
    full_name: str
    email: str
    role: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
