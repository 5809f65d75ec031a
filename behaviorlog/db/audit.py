"""Audit recorder and audit query interface.

The recorder writes each entry on its own connection and transaction, after
the action it describes has resolved. A failed audit write never fails the
primary action: it is logged, counted, and dropped.
"""

import uuid
from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from sqlalchemy import and_, distinct

from behaviorlog.auth.context import ActorContext
from behaviorlog.db.models import AuditLog, User
from behaviorlog.db.queries import scoped_select
from behaviorlog.db.repositories import AuditFilters, AuditRecord
from behaviorlog.db.session import Database, TenantSession
from behaviorlog.utils.logging import StructuredSecurityLogger
from behaviorlog.utils.metrics import PrometheusSecurityMetrics

MAX_PAGE_SIZE = 1000


class AuditAction(str, Enum):
    """Audited action kinds."""

    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    EXPORT = "EXPORT"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    NOTIFICATION = "NOTIFICATION"


@dataclass(frozen=True)
class AuditDraft:
    """An audit entry before org, actor and timestamp are attached.

    ``metadata`` is an opaque, action-specific payload owned by the caller.
    """

    action: AuditAction
    entity_type: str
    entity_id: str | None = None
    metadata: dict[str, Any] | None = None


class AuditClock:
    """Issues strictly increasing timestamps per actor.

    Two entries for the same actor never share a timestamp, even when the
    wall clock does not advance between them.
    """

    _RESOLUTION = timedelta(microseconds=1)

    def __init__(self, max_actors: int = 10_000) -> None:
        self._last: OrderedDict[uuid.UUID, datetime] = OrderedDict()
        self._max_actors = max_actors

    def next(self, actor_id: uuid.UUID, now: datetime | None = None) -> datetime:
        if now is None:
            now = datetime.now(UTC)
        last = self._last.get(actor_id)
        if last is not None and now <= last:
            now = last + self._RESOLUTION
        self._last[actor_id] = now
        self._last.move_to_end(actor_id)
        while len(self._last) > self._max_actors:
            self._last.popitem(last=False)
        return now


class AuditRecorder:
    """Append-only, best-effort audit writer."""

    def __init__(self, database: Database, clock: AuditClock | None = None) -> None:
        """Initialize recorder.

        Args:
            database: Database whose pool audit writes draw from
            clock: Timestamp source (per-actor monotonic)
        """
        self._database = database
        self._clock = clock or AuditClock()
        self._security_log = StructuredSecurityLogger()
        self._metrics = PrometheusSecurityMetrics()
        self.failures = 0

    def _to_row(self, actor: ActorContext, draft: AuditDraft) -> AuditLog:
        return AuditLog(
            id=uuid.uuid4(),
            org_id=actor.org_id,
            actor_id=actor.user_id,
            action=draft.action.value,
            entity_type=draft.entity_type,
            entity_id=draft.entity_id,
            metadata_=draft.metadata,
            timestamp=self._clock.next(actor.user_id),
        )

    async def record(self, actor: ActorContext, draft: AuditDraft) -> None:
        """Append one audit entry. Never raises on write failure."""
        await self.record_many(actor, [draft])

    async def record_many(self, actor: ActorContext, drafts: Iterable[AuditDraft]) -> None:
        """Append several entries for one actor in a single transaction."""
        drafts = list(drafts)
        if not drafts:
            return

        rows = [self._to_row(actor, draft) for draft in drafts]
        try:
            async with self._database.tenant_session(actor) as tx:
                tx.session.add_all(rows)
        except Exception as e:
            self.failures += len(drafts)
            for draft in drafts:
                self._security_log.log_audit_failure(
                    actor, draft.action.value, draft.entity_type, e
                )
                self._metrics.inc_audit_failure(draft.action.value, draft.entity_type)
            return

        for draft in drafts:
            self._metrics.inc_audit_write(draft.action.value)

    async def write(self, tx: TenantSession, draft: AuditDraft) -> AuditRecord:
        """Append an entry inside the caller's transaction.

        Used when the audit entry is itself the requested action. Errors
        propagate to the caller like any other write.
        """
        row = self._to_row(tx.actor, draft)
        tx.session.add(row)
        await tx.session.flush()
        self._metrics.inc_audit_write(draft.action.value)
        return _to_audit_record(row)


def _apply_audit_filters(stmt: Any, filters: AuditFilters) -> Any:
    if filters.time_from is not None:
        stmt = stmt.where(AuditLog.timestamp >= filters.time_from)
    if filters.time_to is not None:
        stmt = stmt.where(AuditLog.timestamp <= filters.time_to)
    if filters.action is not None:
        stmt = stmt.where(AuditLog.action == filters.action.upper())
    if filters.entity_type is not None:
        stmt = stmt.where(AuditLog.entity_type == filters.entity_type)
    return stmt


async def query_audit(tx: TenantSession, filters: AuditFilters) -> list[AuditRecord]:
    """Audit entries for the actor's organization, newest first.

    The page size is capped at MAX_PAGE_SIZE regardless of the request.
    """
    limit = max(1, min(filters.limit, MAX_PAGE_SIZE))
    stmt = (
        scoped_select(AuditLog, tx.actor, AuditLog, User.display_name)
        .outerjoin(User, and_(User.id == AuditLog.actor_id, User.org_id == AuditLog.org_id))
        .order_by(AuditLog.timestamp.desc())
        .limit(limit)
    )
    result = await tx.session.execute(_apply_audit_filters(stmt, filters))
    return [_to_audit_record(row, actor_name) for row, actor_name in result.all()]


def _to_audit_record(row: AuditLog, actor_name: str | None = None) -> AuditRecord:
    return AuditRecord(
        id=row.id,
        org_id=row.org_id,
        actor_id=row.actor_id,
        action=row.action,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        metadata=row.metadata_,
        timestamp=row.timestamp,
        actor_name=actor_name,
    )


async def distinct_actions(tx: TenantSession) -> list[str]:
    """Distinct audit actions recorded for the organization."""
    result = await tx.session.execute(
        scoped_select(AuditLog, tx.actor, distinct(AuditLog.action)).order_by(AuditLog.action)
    )
    return list(result.scalars().all())


async def distinct_entity_types(tx: TenantSession) -> list[str]:
    """Distinct audited entity types for the organization."""
    result = await tx.session.execute(
        scoped_select(AuditLog, tx.actor, distinct(AuditLog.entity_type)).order_by(
            AuditLog.entity_type
        )
    )
    return list(result.scalars().all())

