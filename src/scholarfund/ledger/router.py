"""Donation, financial summary and report API router."""

from fastapi import APIRouter, Depends, HTTPException, Query

from scholarfund.common.exceptions import ValidationError
from scholarfund.common.schemas import error_detail
from scholarfund.common.security import Principal, get_current_principal
from scholarfund.ledger.schemas import (
    DeidentifiedStats,
    DonationCreate,
    DonationResponse,
    FinancialSummary,
)

router = APIRouter()


def _get_service():
    from scholarfund.deps import get_ledger_service
    return get_ledger_service()


def _get_db():
    from scholarfund.deps import get_db
    return get_db()


# ── Donations ──

@router.post("/donations", response_model=DonationResponse, status_code=201)
async def record_donation(
    body: DonationCreate, principal: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            donation = await svc.record_donation(
                session, principal,
                donor_name=body.donor_name,
                amount=body.amount,
                donation_date=body.donation_date,
                donation_method=body.donation_method,
                check_number=body.check_number,
                donor_email=body.donor_email,
                donor_phone=body.donor_phone,
                notes=body.notes,
            )
            return DonationResponse.model_validate(donation)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=error_detail(e))


@router.get("/donations", response_model=list[DonationResponse])
async def list_donations(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        donations = await svc.list_donations(session, limit=limit, offset=offset)
        return [DonationResponse.model_validate(d) for d in donations]


# ── Projections ──

@router.get("/financial-summary", response_model=FinancialSummary)
async def financial_summary(_: Principal = Depends(get_current_principal)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        return FinancialSummary(**await svc.get_financial_summary(session))


@router.get("/reports/deidentified", response_model=DeidentifiedStats)
async def deidentified_stats(principal: Principal = Depends(get_current_principal)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        return DeidentifiedStats(**await svc.get_deidentified_stats(session, principal))
