"""Scholarship and approval API router."""

from fastapi import APIRouter, Depends, HTTPException, Query

from scholarfund.common.exceptions import (
    AlreadyApprovedError,
    AlreadyFinalError,
    ForbiddenError,
    IdentifierConflictError,
    NotFoundError,
    ReferenceNotFoundError,
    ValidationError,
)
from scholarfund.common.schemas import error_detail
from scholarfund.common.security import Principal, get_current_principal
from scholarfund.scholarships.schemas import (
    ApprovalCreate,
    ApprovalOutcome,
    ApprovalResponse,
    ScholarshipCreate,
    ScholarshipDetail,
    ScholarshipResponse,
)

router = APIRouter(prefix="/scholarships")


def _get_service():
    from scholarfund.deps import get_scholarship_service
    return get_scholarship_service()


def _get_db():
    from scholarfund.deps import get_db
    return get_db()


@router.post("", response_model=ScholarshipResponse, status_code=201)
async def create_scholarship(
    body: ScholarshipCreate, principal: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            scholarship = await svc.create_scholarship(
                session, principal,
                client_id=body.client_id,
                treatment_center_id=body.treatment_center_id,
                amount=body.amount,
                award_date=body.award_date,
                insurance_situation=body.insurance_situation,
                purpose=body.purpose,
                notes=body.notes,
            )
            return ScholarshipResponse.model_validate(scholarship)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=error_detail(e))
    except ReferenceNotFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(e))
    except IdentifierConflictError as e:
        raise HTTPException(status_code=409, detail=error_detail(e))


@router.get("", response_model=list[ScholarshipResponse])
async def list_scholarships(
    status: str | None = Query(None),
    client_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            items = await svc.list_scholarships(
                session, status=status, client_id=client_id, limit=limit, offset=offset,
            )
            return [ScholarshipResponse.model_validate(s) for s in items]
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=error_detail(e))


@router.get("/pending", response_model=list[ScholarshipResponse])
async def list_pending(_: Principal = Depends(get_current_principal)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        items = await svc.list_pending(session)
        return [ScholarshipResponse.model_validate(s) for s in items]


@router.get("/{scholarship_id}", response_model=ScholarshipDetail)
async def get_scholarship(
    scholarship_id: str, _: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        scholarship = await svc.get_scholarship(session, scholarship_id, with_approvals=True)
        if scholarship is None:
            raise HTTPException(status_code=404, detail="Scholarship not found")
        return ScholarshipDetail.model_validate(scholarship)


@router.get("/{scholarship_id}/approvals", response_model=list[ApprovalResponse])
async def list_approvals(
    scholarship_id: str, _: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            approvals = await svc.list_approvals(session, scholarship_id)
            return [ApprovalResponse.model_validate(a) for a in approvals]
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(e))


@router.post(
    "/{scholarship_id}/approvals", response_model=ApprovalOutcome, status_code=201,
)
async def approve_scholarship(
    scholarship_id: str,
    body: ApprovalCreate | None = None,
    principal: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            outcome = await svc.record_approval(
                session, scholarship_id, principal,
                comment=body.comment if body else None,
            )
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=error_detail(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(e))
    except (AlreadyApprovedError, AlreadyFinalError) as e:
        raise HTTPException(status_code=409, detail=error_detail(e))
    return ApprovalOutcome(**outcome)
