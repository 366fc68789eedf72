"""Client and treatment center API router."""

from fastapi import APIRouter, Depends, HTTPException, Query

from scholarfund.common.exceptions import NotFoundError, ValidationError
from scholarfund.common.schemas import error_detail
from scholarfund.common.security import Principal, get_current_principal
from scholarfund.registry.schemas import (
    CenterCreate,
    CenterResponse,
    ClientCreate,
    ClientResponse,
)

router = APIRouter()


def _get_service():
    from scholarfund.deps import get_registry_service
    return get_registry_service()


def _get_db():
    from scholarfund.deps import get_db
    return get_db()


# ── Clients ──

@router.post("/clients", response_model=ClientResponse, status_code=201)
async def create_client(
    body: ClientCreate, principal: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            client = await svc.create_client(
                session, principal,
                client_ref_1=body.client_ref_1,
                client_ref_2=body.client_ref_2,
                client_ref_3=body.client_ref_3,
                notes=body.notes,
            )
            return ClientResponse.model_validate(client)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=error_detail(e))


@router.get("/clients", response_model=list[ClientResponse])
async def list_clients(
    include_inactive: bool = Query(False),
    _: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        rows = await svc.list_clients(session, include_inactive=include_inactive)
        return [
            ClientResponse.model_validate(client).model_copy(
                update={"scholarship_count": count}
            )
            for client, count in rows
        ]


@router.delete("/clients/{client_id}", response_model=ClientResponse)
async def deactivate_client(
    client_id: str, principal: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            client = await svc.deactivate_client(session, principal, client_id)
            return ClientResponse.model_validate(client)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(e))


# ── Treatment centers ──

@router.post("/treatment-centers", response_model=CenterResponse, status_code=201)
async def create_center(
    body: CenterCreate, principal: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            center = await svc.create_center(
                session, principal, name=body.name, city=body.city, state=body.state,
            )
            return CenterResponse.model_validate(center)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=error_detail(e))


@router.get("/treatment-centers", response_model=list[CenterResponse])
async def list_centers(
    include_inactive: bool = Query(False),
    _: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        centers = await svc.list_centers(session, active_only=not include_inactive)
        return [CenterResponse.model_validate(c) for c in centers]


@router.delete("/treatment-centers/{center_id}", response_model=CenterResponse)
async def deactivate_center(
    center_id: str, principal: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            center = await svc.deactivate_center(session, principal, center_id)
            return CenterResponse.model_validate(center)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(e))
