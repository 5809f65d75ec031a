"""Unit tests for the audit clock and best-effort audit recorder."""

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import pytest
from sqlalchemy import exc as sa_exc

from behaviorlog.auth.context import ActorContext, Role
from behaviorlog.db.audit import AuditAction, AuditClock, AuditDraft, AuditRecorder
from behaviorlog.db.models import AuditLog
from behaviorlog.db.session import Database


class BrokenDatabase:
    """Database stand-in whose sessions always fail to open."""

    def __init__(self) -> None:
        self.attempts = 0

    @asynccontextmanager
    async def tenant_session(self, actor: ActorContext, **kwargs: Any) -> AsyncIterator[None]:
        self.attempts += 1
        raise sa_exc.OperationalError("INSERT INTO audit_logs", {}, OSError("connection refused"))
        yield


def _actor() -> ActorContext:
    return ActorContext(org_id=uuid.uuid4(), user_id=uuid.uuid4(), role=Role.staff)


def test_clock_is_strictly_increasing_per_actor() -> None:
    clock = AuditClock()
    actor_id = uuid.uuid4()
    frozen = datetime(2026, 1, 1, tzinfo=UTC)

    stamps = [clock.next(actor_id, now=frozen) for _ in range(5)]

    assert stamps == sorted(stamps)
    assert len(set(stamps)) == 5


def test_clock_does_not_couple_actors() -> None:
    clock = AuditClock()
    frozen = datetime(2026, 1, 1, tzinfo=UTC)

    first = clock.next(uuid.uuid4(), now=frozen)
    second = clock.next(uuid.uuid4(), now=frozen)

    assert first == second == frozen


def test_clock_follows_wall_clock_when_it_advances() -> None:
    clock = AuditClock()
    actor_id = uuid.uuid4()

    clock.next(actor_id, now=datetime(2026, 1, 1, tzinfo=UTC))
    later = clock.next(actor_id, now=datetime(2026, 1, 2, tzinfo=UTC))

    assert later == datetime(2026, 1, 2, tzinfo=UTC)


def test_clock_forgets_least_recent_actor() -> None:
    clock = AuditClock(max_actors=2)
    a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    frozen = datetime(2026, 1, 1, tzinfo=UTC)

    clock.next(a, now=frozen)
    clock.next(b, now=frozen)
    clock.next(c, now=frozen)

    # a was evicted, so its next stamp is not bumped past the first one
    assert clock.next(a, now=frozen) == frozen


@pytest.mark.asyncio
async def test_failed_audit_write_is_suppressed() -> None:
    database = BrokenDatabase()
    recorder = AuditRecorder(database)  # type: ignore[arg-type]

    await recorder.record(_actor(), AuditDraft(AuditAction.CREATE, "clients", "c-1"))

    assert database.attempts == 1
    assert recorder.failures == 1


@pytest.mark.asyncio
async def test_record_many_counts_each_dropped_entry() -> None:
    recorder = AuditRecorder(BrokenDatabase())  # type: ignore[arg-type]
    drafts = [AuditDraft(AuditAction.NOTIFICATION, "announcement_created") for _ in range(3)]

    await recorder.record_many(_actor(), drafts)

    assert recorder.failures == 3


@pytest.mark.asyncio
async def test_record_many_with_no_drafts_opens_no_session() -> None:
    database = BrokenDatabase()
    recorder = AuditRecorder(database)  # type: ignore[arg-type]

    await recorder.record_many(_actor(), [])

    assert database.attempts == 0
    assert recorder.failures == 0


@pytest.mark.asyncio
async def test_recorded_entry_is_persisted(
    database: Database,
    tenants: Any,
    audit_rows: Callable[..., Awaitable[list[AuditLog]]],
) -> None:
    recorder = AuditRecorder(database)
    actor = tenants.staff_x

    await recorder.record(
        actor, AuditDraft(AuditAction.EXPORT, "logs", None, {"record_count": 3})
    )

    rows = await audit_rows(actor_id=actor.user_id)
    assert len(rows) == 1
    assert rows[0].org_id == actor.org_id
    assert rows[0].action == "EXPORT"
    assert rows[0].entity_type == "logs"
    assert rows[0].metadata_ == {"record_count": 3}
    assert recorder.failures == 0


@pytest.mark.asyncio
async def test_same_actor_entries_never_share_timestamp(
    database: Database,
    tenants: Any,
    audit_rows: Callable[..., Awaitable[list[AuditLog]]],
) -> None:
    recorder = AuditRecorder(database)
    actor = tenants.supervisor_x

    await recorder.record_many(
        actor, [AuditDraft(AuditAction.READ, "clients") for _ in range(20)]
    )

    rows = await audit_rows(actor_id=actor.user_id)
    assert len(rows) == 20
    assert len({row.timestamp for row in rows}) == 20
