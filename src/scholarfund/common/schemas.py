"""Shared Pydantic schemas for ScholarFund."""

from pydantic import BaseModel

from scholarfund.common.exceptions import ScholarFundError


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "scholarfund"


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: str = ""


def error_detail(exc: ScholarFundError) -> dict:
    """HTTPException detail payload carrying the error's message and code."""
    return ErrorResponse(error=exc.message, code=exc.code).model_dump(exclude={"detail"})
