"""Audit log API router."""

from fastapi import APIRouter, Depends, Query

from scholarfund.audit.schemas import AuditEventResponse
from scholarfund.common.security import Principal, get_current_principal

router = APIRouter()


def _get_service():
    from scholarfund.deps import get_audit_service
    return get_audit_service()


def _get_db():
    from scholarfund.deps import get_db
    return get_db()


@router.get("/audit", response_model=list[AuditEventResponse])
async def get_audit_events(
    resource_type: str | None = Query(None),
    resource_id: str | None = Query(None),
    action: str | None = Query(None),
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    _: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        events = await svc.get_events(
            session, resource_type=resource_type, resource_id=resource_id,
            action=action, limit=limit, offset=offset,
        )
        return [AuditEventResponse.model_validate(e) for e in events]


@router.get("/audit/recent", response_model=list[AuditEventResponse])
async def get_recent_activity(_: Principal = Depends(get_current_principal)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        events = await svc.recent_activity(session)
        return [AuditEventResponse.model_validate(e) for e in events]
