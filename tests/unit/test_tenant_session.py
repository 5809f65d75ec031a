"""Unit tests for the tenant-scoped data session lifecycle."""

import asyncio
import uuid
from typing import Any

import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from behaviorlog.db.models import Client
from behaviorlog.db.session import Database
from behaviorlog.errors import NotFound, Unavailable


class _RefusingSession:
    """Session whose connection cannot be opened."""

    def __init__(self) -> None:
        self.closed = False

    async def connection(self) -> None:
        raise sa_exc.OperationalError("SELECT 1", {}, OSError("connection refused"))

    async def close(self) -> None:
        self.closed = True


class _HangingSession(_RefusingSession):
    """Session whose connection never becomes available."""

    async def connection(self) -> None:
        await asyncio.sleep(10)


async def _client_codes(engine: AsyncEngine, org_id: uuid.UUID) -> set[str]:
    async with AsyncSession(engine) as session:
        result = await session.execute(
            select(Client.client_code).where(Client.org_id == org_id)
        )
        return set(result.scalars().all())


def _client(org_id: uuid.UUID, code: str) -> Client:
    return Client(id=uuid.uuid4(), org_id=org_id, client_code=code, display_name=code)


@pytest.mark.asyncio
async def test_session_commits_on_success(
    database: Database, engine: AsyncEngine, tenants: Any
) -> None:
    actor = tenants.supervisor_x

    async with database.tenant_session(actor) as tx:
        assert tx.actor is actor
        tx.session.add(_client(actor.org_id, "X-100"))

    assert "X-100" in await _client_codes(engine, actor.org_id)
    assert database.stats.commits == 1
    assert database.stats.in_use == 0


@pytest.mark.asyncio
async def test_session_rolls_back_and_reraises(
    database: Database, engine: AsyncEngine, tenants: Any
) -> None:
    actor = tenants.supervisor_x

    with pytest.raises(NotFound):
        async with database.tenant_session(actor) as tx:
            tx.session.add(_client(actor.org_id, "X-101"))
            await tx.session.flush()
            raise NotFound()

    assert "X-101" not in await _client_codes(engine, actor.org_id)
    assert database.stats.rollbacks == 1
    assert database.stats.in_use == 0


@pytest.mark.asyncio
async def test_read_only_session_never_commits(
    database: Database, engine: AsyncEngine, tenants: Any
) -> None:
    actor = tenants.supervisor_x

    async with database.tenant_session(actor, read_only=True) as tx:
        tx.session.add(_client(actor.org_id, "X-102"))
        await tx.session.flush()

    assert "X-102" not in await _client_codes(engine, actor.org_id)
    assert database.stats.commits == 0


@pytest.mark.asyncio
async def test_with_tenant_session_returns_result(database: Database, tenants: Any) -> None:
    async def count_clients(tx: Any) -> int:
        result = await tx.session.execute(
            select(Client.id).where(Client.org_id == tx.actor.org_id)
        )
        return len(result.all())

    assert await database.with_tenant_session(tenants.staff_x, count_clients, read_only=True) == 1


@pytest.mark.asyncio
async def test_cancelled_work_releases_connection(
    database: Database, engine: AsyncEngine, tenants: Any
) -> None:
    actor = tenants.supervisor_x
    started = asyncio.Event()

    async def slow_write() -> None:
        async with database.tenant_session(actor) as tx:
            tx.session.add(_client(actor.org_id, "X-103"))
            await tx.session.flush()
            started.set()
            await asyncio.sleep(10)

    task = asyncio.create_task(slow_write())
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert database.stats.in_use == 0
    assert database.stats.rollbacks == 1
    assert "X-103" not in await _client_codes(engine, actor.org_id)


@pytest.mark.asyncio
async def test_connection_failure_is_unavailable(engine: AsyncEngine, tenants: Any) -> None:
    database = Database(engine)
    refusing = _RefusingSession()
    database._sessionmaker = lambda: refusing  # type: ignore[assignment]

    with pytest.raises(Unavailable):
        async with database.tenant_session(tenants.staff_x):
            pytest.fail("body must not run without a connection")

    assert refusing.closed
    assert database.stats.unavailable == 1
    assert database.stats.acquired == 0


@pytest.mark.asyncio
async def test_acquire_timeout_is_unavailable(engine: AsyncEngine, tenants: Any) -> None:
    database = Database(engine, acquire_timeout_s=0.05)
    database._sessionmaker = lambda: _HangingSession()  # type: ignore[assignment]

    with pytest.raises(Unavailable):
        async with database.tenant_session(tenants.staff_x):
            pass

    assert database.stats.unavailable == 1


@pytest.mark.asyncio
async def test_sqlite_does_not_bind_session_settings(database: Database) -> None:
    assert database.binds_session_settings is False
    ok, status = await database.ping()
    assert ok
    assert status == "ok"
