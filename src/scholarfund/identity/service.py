"""User roster and session service."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from scholarfund.audit.models import AuditAction
from scholarfund.common.config import ScholarFundSettings
from scholarfund.common.exceptions import (
    DuplicateEmailError,
    ForbiddenError,
    NotFoundError,
)
from scholarfund.common.models import utcnow
from scholarfund.common.security import Principal, create_session_token
from scholarfund.common.validators import require_choice, require_text
from scholarfund.identity.models import ROLES, UserModel


def _normalize_email(email: str) -> str:
    return require_text(email, "email").lower()


def _require_super_admin(actor: Principal | None) -> None:
    # actor=None is the local CLI bootstrapping the first accounts
    if actor is not None and not actor.is_super_admin:
        raise ForbiddenError("Access denied. Super Admin only.")


def to_principal(user: UserModel) -> Principal:
    return Principal(id=user.id, display_name=user.full_name, role=user.role)


class UserService:
    """Staff user management and session bookkeeping."""

    def __init__(self, settings: ScholarFundSettings, audit_service=None):
        self.settings = settings
        self.audit_service = audit_service

    # ── Roster ──

    async def create_user(
        self,
        session: AsyncSession,
        actor: Principal | None,
        full_name: str,
        email: str,
        role: str = "admin",
    ) -> UserModel:
        _require_super_admin(actor)
        email = _normalize_email(email)
        role = require_choice(role, ROLES, "role")

        if await self.get_by_email(session, email) is not None:
            raise DuplicateEmailError()

        user = UserModel(
            full_name=require_text(full_name, "full_name"),
            email=email,
            role=role,
            is_active=True,
            created_by=actor.id if actor else None,
        )
        session.add(user)
        try:
            await session.flush()
        except IntegrityError:
            raise DuplicateEmailError()

        if self.audit_service:
            await self.audit_service.record(
                session, actor.id if actor else None, AuditAction.CREATE, "user", user.id,
                {"action": "User created", "email": email, "role": role},
            )
        return user

    async def list_users(
        self, session: AsyncSession, actor: Principal,
    ) -> list[UserModel]:
        _require_super_admin(actor)
        result = await session.execute(
            select(UserModel).order_by(UserModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_user(
        self, session: AsyncSession, actor: Principal, user_id: str, **updates: Any
    ) -> UserModel:
        _require_super_admin(actor)
        user = await self.get_by_id(session, user_id)
        if user is None:
            raise NotFoundError("User not found")

        changed = {}
        if updates.get("full_name") is not None:
            user.full_name = require_text(updates["full_name"], "full_name")
            changed["full_name"] = user.full_name
        if updates.get("role") is not None:
            user.role = require_choice(updates["role"], ROLES, "role")
            changed["role"] = user.role
        if updates.get("is_active") is not None:
            user.is_active = bool(updates["is_active"])
            changed["is_active"] = user.is_active
        await session.flush()

        if self.audit_service and changed:
            await self.audit_service.record(
                session, actor.id, AuditAction.UPDATE, "user", user.id,
                {"action": "User updated", "fields": changed},
            )
        return user

    async def get_by_id(
        self, session: AsyncSession, user_id: str
    ) -> UserModel | None:
        return await session.get(UserModel, user_id)

    async def get_by_email(
        self, session: AsyncSession, email: str
    ) -> UserModel | None:
        result = await session.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    # ── Sessions ──

    async def open_session(
        self, session: AsyncSession, email: str,
    ) -> tuple[UserModel, str]:
        """Start a session for an e-mail the identity provider has verified.

        Returns (user, signed_session_token).
        """
        user = await self.get_by_email(session, email)
        if user is None or not user.is_active:
            raise ForbiddenError("No active staff account for this email")

        user.last_login = utcnow()
        await session.flush()

        if self.audit_service:
            await self.audit_service.record(
                session, user.id, AuditAction.LOGIN, "user", user.id,
                {"action": "Dashboard accessed"},
            )
        return user, create_session_token(user.id, self.settings)

    async def close_session(self, session: AsyncSession, principal: Principal) -> None:
        if self.audit_service:
            await self.audit_service.record(
                session, principal.id, AuditAction.LOGOUT, "user", principal.id,
                {"action": "User logged out"},
            )

    async def resolve_principal(
        self, session: AsyncSession, user_id: str
    ) -> Principal | None:
        user = await self.get_by_id(session, user_id)
        if user is None or not user.is_active:
            return None
        return to_principal(user)
