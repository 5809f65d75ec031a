"""Tenant-scoped data sessions.

A ``Database`` owns the engine and its bounded connection pool. Every data
access goes through ``Database.tenant_session``, which

1. acquires one connection (failing fast with Unavailable),
2. opens a transaction and binds ``app.current_org_id``,
   ``app.current_user_id`` and ``app.current_role`` transaction-locally,
3. yields a ``TenantSession`` handle carrying the bound actor,
4. commits on success, rolls back on any error, and always releases the
   connection.

Finishing the transaction is shielded from cancellation so a disconnected
client never leaves a connection mid-transaction.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from behaviorlog.auth.context import ActorContext
from behaviorlog.config import Settings
from behaviorlog.db.engine import create_async_engine_from_settings
from behaviorlog.db.row_security import ORG_SETTING, ROLE_SETTING, USER_SETTING
from behaviorlog.errors import Unavailable
from behaviorlog.utils.logging import StructuredSecurityLogger
from behaviorlog.utils.metrics import PrometheusSessionMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors raised while checking a connection out of the pool or opening it.
CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    sa_exc.TimeoutError,
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    OSError,
    asyncio.TimeoutError,
)

_BIND_SETTING = text("SELECT set_config(:name, :value, true)")


@dataclass(frozen=True)
class TenantSession:
    """Transaction handle bound to one actor.

    Repositories take this handle rather than a bare session, so the tenant
    filter they apply always comes from the same actor the database
    connection was bound to.
    """

    session: AsyncSession
    actor: ActorContext


@dataclass
class PoolStats:
    """In-process counters for the connection pool."""

    acquired: int = 0
    released: int = 0
    commits: int = 0
    rollbacks: int = 0
    unavailable: int = 0

    @property
    def in_use(self) -> int:
        return self.acquired - self.released

    def as_dict(self) -> dict[str, int]:
        return {
            "acquired": self.acquired,
            "released": self.released,
            "in_use": self.in_use,
            "commits": self.commits,
            "rollbacks": self.rollbacks,
            "unavailable": self.unavailable,
        }


class Database:
    """Owner of the engine, its pool, and the session lifecycle."""

    def __init__(self, engine: AsyncEngine, acquire_timeout_s: float = 2.0) -> None:
        """Initialize database.

        Args:
            engine: Async engine whose pool this object owns
            acquire_timeout_s: Upper bound on waiting for a connection
        """
        self._engine = engine
        self._acquire_timeout_s = acquire_timeout_s
        self._sessionmaker = async_sessionmaker(engine, expire_on_commit=False)
        self._security_log = StructuredSecurityLogger()
        self._metrics = PrometheusSessionMetrics()
        self.stats = PoolStats()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create a database with a pool sized from settings."""
        return cls(
            create_async_engine_from_settings(settings),
            acquire_timeout_s=settings.db_acquire_timeout_s,
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def binds_session_settings(self) -> bool:
        """Whether the backend supports server-side session variables."""
        return self._engine.dialect.name == "postgresql"

    async def _acquire(self, session: AsyncSession) -> None:
        try:
            await asyncio.wait_for(session.connection(), timeout=self._acquire_timeout_s)
        except CONNECTION_ERRORS as e:
            self.stats.unavailable += 1
            self._metrics.session_unavailable()
            await asyncio.shield(session.close())
            raise Unavailable("Database temporarily unavailable") from e
        self.stats.acquired += 1
        self._metrics.session_opened()

    async def _bind(self, session: AsyncSession, actor: ActorContext, read_only: bool) -> None:
        if not self.binds_session_settings:
            return

        if read_only:
            await session.execute(text("SET TRANSACTION READ ONLY"))

        for name, value in (
            (ORG_SETTING, str(actor.org_id)),
            (USER_SETTING, str(actor.user_id)),
            (ROLE_SETTING, actor.role.value),
        ):
            await session.execute(_BIND_SETTING, {"name": name, "value": value})

    async def _finish(self, session: AsyncSession, *, commit: bool) -> None:
        """Resolve the transaction and release the connection."""
        outcome = "rollback"
        try:
            if commit:
                await session.commit()
                outcome = "commit"
            else:
                await session.rollback()
        finally:
            await session.close()
            self.stats.released += 1
            if outcome == "commit":
                self.stats.commits += 1
            else:
                self.stats.rollbacks += 1
            self._metrics.session_closed(outcome)

    @asynccontextmanager
    async def tenant_session(
        self, actor: ActorContext, *, read_only: bool = False
    ) -> AsyncIterator[TenantSession]:
        """Open a transaction bound to ``actor``.

        Args:
            actor: Authenticated actor whose org, user and role are bound
            read_only: End in rollback instead of commit; on PostgreSQL the
                transaction is also declared READ ONLY

        Yields:
            TenantSession handle

        Raises:
            Unavailable: If no connection could be acquired in time
        """
        session = self._sessionmaker()
        await self._acquire(session)

        try:
            await self._bind(session, actor, read_only)
            yield TenantSession(session=session, actor=actor)
        except BaseException:
            self._security_log.log_session_outcome(actor, "rollback")
            await asyncio.shield(self._finish(session, commit=False))
            raise
        else:
            await asyncio.shield(self._finish(session, commit=not read_only))

    async def with_tenant_session(
        self,
        actor: ActorContext,
        fn: Callable[[TenantSession], Awaitable[T]],
        *,
        read_only: bool = False,
    ) -> T:
        """Run ``fn`` inside a tenant session and return its result.

        Errors raised by ``fn`` propagate unchanged after rollback.
        """
        async with self.tenant_session(actor, read_only=read_only) as tx:
            return await fn(tx)

    @asynccontextmanager
    async def system_session(self) -> AsyncIterator[AsyncSession]:
        """Unbound session for credential lookup before an actor exists.

        Only the ``users`` and ``organizations`` tables may be read through it.
        """
        session = self._sessionmaker()
        await self._acquire(session)
        try:
            yield session
        except BaseException:
            await asyncio.shield(self._finish(session, commit=False))
            raise
        else:
            await asyncio.shield(self._finish(session, commit=False))

    async def ping(self) -> tuple[bool, str]:
        """Check connectivity.

        Returns:
            (is_ok, status_message)
        """
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return (True, "ok")
        except Exception as e:
            return (False, f"error: {type(e).__name__}")

    async def dispose(self) -> None:
        await self._engine.dispose()
