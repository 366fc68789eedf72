"""Async database manager for ScholarFund."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from scholarfund.common.config import ScholarFundSettings, get_settings
from scholarfund.common.exceptions import StoreUnavailableError
from scholarfund.common.models import Base

# Import all model modules so Base.metadata is complete for create_all().
import scholarfund.audit.models  # noqa: F401
import scholarfund.identity.models  # noqa: F401
import scholarfund.registry.models  # noqa: F401
import scholarfund.ledger.models  # noqa: F401
import scholarfund.scholarships.models  # noqa: F401


def is_unique_violation(exc: IntegrityError, constraint: str, *columns: str) -> bool:
    """True when ``exc`` was raised by the named unique constraint.

    PostgreSQL reports the constraint name; SQLite only lists the
    ``table.column`` pairs, so those are matched as well.
    """
    message = str(exc.orig)
    if constraint in message:
        return True
    return (
        bool(columns)
        and "UNIQUE constraint failed" in message
        and all(column in message for column in columns)
    )


class DatabaseManager:
    """Manages a single async database engine.

    Every unit of work runs inside ``get_session()``: the session commits when
    the block exits normally and rolls back on any exception, so a workflow
    operation either lands all of its rows or none of them.
    """

    def __init__(self, settings: ScholarFundSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        url = make_url(self._settings.db_url)
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_async_engine(url, echo=False)
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager not initialized — call init() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except (OperationalError, InterfaceError) as exc:
                await session.rollback()
                raise StoreUnavailableError() from exc
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized — call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
