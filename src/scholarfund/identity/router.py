"""Session and user roster API router."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from scholarfund.common.exceptions import (
    DuplicateEmailError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from scholarfund.common.schemas import error_detail
from scholarfund.common.security import Principal, get_current_principal, require_api_key
from scholarfund.identity.schemas import (
    PrincipalResponse,
    SessionOpen,
    SessionResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from scholarfund.identity.service import to_principal

router = APIRouter()


def _get_service():
    from scholarfund.deps import get_user_service
    return get_user_service()


def _get_db():
    from scholarfund.deps import get_db
    return get_db()


# ── Sessions ──

@router.post("/session", response_model=SessionResponse, status_code=201)
async def open_session(body: SessionOpen, _=Depends(require_api_key)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            user, token = await svc.open_session(session, body.email)
            principal = to_principal(user)
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=error_detail(e))
    return SessionResponse(
        token=token,
        expires_in=svc.settings.session_max_age,
        principal=PrincipalResponse(**asdict(principal)),
    )


@router.delete("/session", status_code=204)
async def close_session(principal: Principal = Depends(get_current_principal)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.close_session(session, principal)


@router.get("/me", response_model=PrincipalResponse)
async def whoami(principal: Principal = Depends(get_current_principal)):
    return PrincipalResponse(**asdict(principal))


# ── Users (super admin only) ──

@router.get("/users", response_model=list[UserResponse])
async def list_users(principal: Principal = Depends(get_current_principal)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            users = await svc.list_users(session, principal)
            return [UserResponse.model_validate(u) for u in users]
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=error_detail(e))


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    body: UserCreate, principal: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            user = await svc.create_user(
                session, principal,
                full_name=body.full_name, email=body.email, role=body.role,
            )
            return UserResponse.model_validate(user)
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=error_detail(e))
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=error_detail(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=error_detail(e))


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str, body: UserUpdate,
    principal: Principal = Depends(get_current_principal),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            user = await svc.update_user(
                session, principal, user_id, **body.model_dump(exclude_none=True)
            )
            return UserResponse.model_validate(user)
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=error_detail(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=error_detail(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=error_detail(e))
