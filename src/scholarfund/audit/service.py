"""Audit service — append and query the staff activity log."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scholarfund.audit.models import AuditEventModel
from scholarfund.common.config import ScholarFundSettings
from scholarfund.common.exceptions import AuditRecordingError

logger = logging.getLogger(__name__)


class AuditService:
    """Append-only event log shared by every mutating operation.

    Writes go into a SAVEPOINT of the caller's transaction. By default a
    failed write is logged and dropped so the business operation still
    commits; with ``strict_audit`` enabled it raises ``AuditRecordingError``
    and the caller's whole transaction rolls back.
    """

    def __init__(self, settings: ScholarFundSettings):
        self.settings = settings

    # ── Write ──

    async def record(
        self,
        session: AsyncSession,
        actor_id: str | None,
        action: str,
        resource_type: str,
        resource_id: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> AuditEventModel | None:
        """Append one event. Returns None when a best-effort write was dropped."""
        try:
            async with session.begin_nested():
                event = AuditEventModel(
                    actor_id=actor_id,
                    action=action,
                    resource_type=resource_type,
                    resource_id=resource_id,
                    detail=detail or {},
                )
                session.add(event)
                await session.flush()
        except SQLAlchemyError as exc:
            logger.exception(
                "Audit write failed: %s %s %s", action, resource_type, resource_id,
            )
            if self.settings.strict_audit:
                raise AuditRecordingError() from exc
            return None
        return event

    # ── Read ──

    async def get_events(
        self,
        session: AsyncSession,
        resource_type: str | None = None,
        resource_id: str | None = None,
        action: str | None = None,
        actor_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditEventModel]:
        """Paginated event list, newest first."""
        query = select(AuditEventModel)
        if resource_type:
            query = query.where(AuditEventModel.resource_type == resource_type)
        if resource_id:
            query = query.where(AuditEventModel.resource_id == resource_id)
        if action:
            query = query.where(AuditEventModel.action == action)
        if actor_id:
            query = query.where(AuditEventModel.actor_id == actor_id)
        query = (
            query.order_by(AuditEventModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(query)
        return list(result.scalars().all())

    async def recent_activity(
        self, session: AsyncSession, limit: int | None = None,
    ) -> list[AuditEventModel]:
        return await self.get_events(
            session, limit=limit or self.settings.recent_activity_limit,
        )
