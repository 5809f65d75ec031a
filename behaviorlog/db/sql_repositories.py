"""SQL repositories for tenant-partitioned entities.

Every repository is constructed from a ``TenantSession``; each query carries
an explicit ``org_id`` predicate taken from the session's actor, in addition
to the row policies the database enforces on the bound connection.
Repositories never commit. The surrounding tenant session owns the
transaction.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Select, and_, case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from behaviorlog.db.models import (
    Announcement,
    Behavior,
    Client,
    Comment,
    LogEntry,
    Organization,
    User,
    utcnow,
)
from behaviorlog.db.queries import scoped_select
from behaviorlog.db.repositories import (
    AnnouncementRecord,
    BehaviorRecord,
    ClientRecord,
    CommentRecord,
    LogEntryRecord,
    LogFilters,
    ReportSummary,
    UserRecord,
)
from behaviorlog.db.session import TenantSession
from behaviorlog.errors import NotFound

PRIORITY_ORDER = {"urgent": 1, "high": 2, "normal": 3, "low": 4}


def _apply_changes(row: Any, changes: dict[str, Any], allowed: frozenset[str]) -> None:
    for key, value in changes.items():
        if key in allowed and value is not None:
            setattr(row, key, value)
    if hasattr(row, "updated_at"):
        row.updated_at = utcnow()


class SqlUserRepository:
    """User lookups. Login runs before any actor exists, so it is a static helper."""

    def __init__(self, tx: TenantSession) -> None:
        self._session = tx.session
        self._actor = tx.actor

    @staticmethod
    async def find_for_login(session: AsyncSession, email: str) -> tuple[UserRecord, str] | None:
        """Find an active user by email, returning the record and password hash."""
        result = await session.execute(
            select(User, Organization.name)
            .join(Organization, Organization.id == User.org_id)
            .where(User.email == email, User.active.is_(True))
        )
        row = result.first()
        if row is None:
            return None
        user, org_name = row
        return (_to_user_record(user, org_name), user.password_hash)

    async def get_current(self) -> UserRecord | None:
        """Get the acting user inside its own organization."""
        result = await self._session.execute(
            select(User, Organization.name)
            .join(Organization, Organization.id == User.org_id)
            .where(User.id == self._actor.user_id, User.org_id == self._actor.org_id)
        )
        row = result.first()
        if row is None:
            return None
        user, org_name = row
        return _to_user_record(user, org_name)

    async def notification_recipients(self) -> list[uuid.UUID]:
        """Active users in the actor's organization who opted into announcements."""
        result = await self._session.execute(
            select(User.id).where(
                User.org_id == self._actor.org_id,
                User.active.is_(True),
                User.notify_announcements.is_(True),
            )
        )
        return list(result.scalars().all())


def _to_user_record(user: User, org_name: str | None = None) -> UserRecord:
    return UserRecord(
        id=user.id,
        org_id=user.org_id,
        email=user.email,
        display_name=user.display_name,
        role=user.role,
        active=user.active,
        org_name=org_name,
    )


class SqlClientRepository:
    """SQL repository for the client roster."""

    _UPDATABLE = frozenset({"client_code", "display_name"})

    def __init__(self, tx: TenantSession) -> None:
        self._session = tx.session
        self._actor = tx.actor

    async def _get_row(self, client_id: uuid.UUID) -> Client | None:
        result = await self._session.execute(
            scoped_select(Client, self._actor).where(Client.id == client_id)
        )
        return result.scalar_one_or_none()

    async def list_clients(self, include_inactive: bool = False) -> list[ClientRecord]:
        """List clients ordered by code."""
        stmt = scoped_select(Client, self._actor)
        if not include_inactive:
            stmt = stmt.where(Client.active.is_(True))
        result = await self._session.execute(stmt.order_by(Client.client_code))
        return [_to_client_record(row) for row in result.scalars().all()]

    async def get_client(self, client_id: uuid.UUID) -> ClientRecord | None:
        """Get client by ID, or None if absent from the actor's organization."""
        row = await self._get_row(client_id)
        return _to_client_record(row) if row else None

    async def create_client(self, client_code: str, display_name: str) -> ClientRecord:
        """Create an active client."""
        row = Client(
            id=uuid.uuid4(),
            org_id=self._actor.org_id,
            client_code=client_code,
            display_name=display_name,
            active=True,
        )
        self._session.add(row)
        await self._session.flush()
        return _to_client_record(row)

    async def update_client(
        self, client_id: uuid.UUID, changes: dict[str, Any]
    ) -> ClientRecord | None:
        """Apply a partial update. Returns None if the client is not found."""
        row = await self._get_row(client_id)
        if row is None:
            return None
        _apply_changes(row, changes, self._UPDATABLE)
        await self._session.flush()
        return _to_client_record(row)

    async def deactivate_client(self, client_id: uuid.UUID) -> bool:
        """Soft-delete a client. Returns False if not found."""
        row = await self._get_row(client_id)
        if row is None:
            return False
        row.active = False
        row.updated_at = utcnow()
        await self._session.flush()
        return True


def _to_client_record(row: Client) -> ClientRecord:
    return ClientRecord(
        id=row.id,
        org_id=row.org_id,
        client_code=row.client_code,
        display_name=row.display_name,
        active=row.active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlBehaviorRepository:
    """SQL repository for the behavior catalog."""

    _UPDATABLE = frozenset({"name", "description"})

    def __init__(self, tx: TenantSession) -> None:
        self._session = tx.session
        self._actor = tx.actor

    async def _get_row(self, behavior_id: uuid.UUID) -> Behavior | None:
        result = await self._session.execute(
            scoped_select(Behavior, self._actor).where(Behavior.id == behavior_id)
        )
        return result.scalar_one_or_none()

    async def list_behaviors(self) -> list[BehaviorRecord]:
        """List behaviors ordered by name."""
        result = await self._session.execute(
            scoped_select(Behavior, self._actor).order_by(Behavior.name)
        )
        return [_to_behavior_record(row) for row in result.scalars().all()]

    async def get_behavior(self, behavior_id: uuid.UUID) -> BehaviorRecord | None:
        """Get behavior by ID."""
        row = await self._get_row(behavior_id)
        return _to_behavior_record(row) if row else None

    async def create_behavior(self, name: str, description: str | None) -> BehaviorRecord:
        """Add a behavior to the catalog."""
        row = Behavior(
            id=uuid.uuid4(),
            org_id=self._actor.org_id,
            name=name,
            description=description,
        )
        self._session.add(row)
        await self._session.flush()
        return _to_behavior_record(row)

    async def update_behavior(
        self, behavior_id: uuid.UUID, changes: dict[str, Any]
    ) -> BehaviorRecord | None:
        """Apply a partial update. Returns None if not found."""
        row = await self._get_row(behavior_id)
        if row is None:
            return None
        _apply_changes(row, changes, self._UPDATABLE)
        await self._session.flush()
        return _to_behavior_record(row)

    async def delete_behavior(self, behavior_id: uuid.UUID) -> bool:
        """Delete a behavior. Returns False if not found."""
        row = await self._get_row(behavior_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True


def _to_behavior_record(row: Behavior) -> BehaviorRecord:
    return BehaviorRecord(
        id=row.id,
        org_id=row.org_id,
        name=row.name,
        description=row.description,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlLogEntryRepository:
    """SQL repository for behavior log entries."""

    _UPDATABLE = frozenset(
        {
            "client_id",
            "behavior_id",
            "intensity",
            "duration_min",
            "antecedent",
            "behavior_observed",
            "consequence",
            "notes",
            "incident",
        }
    )

    def __init__(self, tx: TenantSession) -> None:
        self._session = tx.session
        self._actor = tx.actor

    def _detail_query(self) -> Select[Any]:
        return (
            scoped_select(
                LogEntry,
                self._actor,
                LogEntry,
                Client.client_code,
                Client.display_name,
                Behavior.name,
                User.display_name,
            )
            .join(Client, and_(Client.id == LogEntry.client_id, Client.org_id == LogEntry.org_id))
            .join(
                Behavior,
                and_(Behavior.id == LogEntry.behavior_id, Behavior.org_id == LogEntry.org_id),
            )
            .join(User, and_(User.id == LogEntry.staff_id, User.org_id == LogEntry.org_id))
        )

    async def _get_row(self, log_id: uuid.UUID) -> LogEntry | None:
        result = await self._session.execute(
            scoped_select(LogEntry, self._actor).where(LogEntry.id == log_id)
        )
        return result.scalar_one_or_none()

    async def _require_references(
        self, client_id: uuid.UUID | None, behavior_id: uuid.UUID | None
    ) -> None:
        """Resolve weak references inside the tenant. Unknown ids raise NotFound."""
        if client_id is not None:
            found = await self._session.execute(
                scoped_select(Client, self._actor, Client.id).where(Client.id == client_id)
            )
            if found.scalar_one_or_none() is None:
                raise NotFound("Client not found")
        if behavior_id is not None:
            found = await self._session.execute(
                scoped_select(Behavior, self._actor, Behavior.id).where(
                    Behavior.id == behavior_id
                )
            )
            if found.scalar_one_or_none() is None:
                raise NotFound("Behavior not found")

    async def list_entries(self, filters: LogFilters) -> list[LogEntryRecord]:
        """List entries newest first."""
        stmt = _apply_log_filters(self._detail_query(), filters).order_by(
            LogEntry.logged_at.desc()
        )
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        result = await self._session.execute(stmt)
        return [_to_log_record(*row) for row in result.all()]

    async def get_entry(self, log_id: uuid.UUID) -> LogEntryRecord | None:
        """Get a log entry with display names."""
        result = await self._session.execute(self._detail_query().where(LogEntry.id == log_id))
        row = result.first()
        return _to_log_record(*row) if row else None

    async def exists(self, log_id: uuid.UUID) -> bool:
        return await self._get_row(log_id) is not None

    async def create_entry(self, values: dict[str, Any]) -> LogEntryRecord:
        """Create a log entry attributed to the acting user."""
        await self._require_references(values["client_id"], values["behavior_id"])
        row = LogEntry(
            id=uuid.uuid4(),
            org_id=self._actor.org_id,
            staff_id=self._actor.user_id,
            client_id=values["client_id"],
            behavior_id=values["behavior_id"],
            intensity=values["intensity"],
            duration_min=values.get("duration_min"),
            antecedent=values.get("antecedent"),
            behavior_observed=values.get("behavior_observed"),
            consequence=values.get("consequence"),
            notes=values.get("notes"),
            incident=bool(values.get("incident") or False),
        )
        self._session.add(row)
        await self._session.flush()
        return _to_log_record(row)

    async def update_entry(
        self, log_id: uuid.UUID, changes: dict[str, Any]
    ) -> LogEntryRecord | None:
        """Apply a partial update. Returns None if not found."""
        row = await self._get_row(log_id)
        if row is None:
            return None
        await self._require_references(changes.get("client_id"), changes.get("behavior_id"))
        _apply_changes(row, changes, self._UPDATABLE)
        await self._session.flush()
        return _to_log_record(row)

    async def delete_entry(self, log_id: uuid.UUID) -> bool:
        """Delete a log entry and its comments. Returns False if not found."""
        row = await self._get_row(log_id)
        if row is None:
            return False
        await self._session.execute(
            delete(Comment).where(Comment.log_id == log_id, Comment.org_id == self._actor.org_id)
        )
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def summary(self, filters: LogFilters) -> ReportSummary:
        """Aggregate counts over the filtered entries."""
        # Every catalog behavior is reported, with 0 when no entry matches.
        behavior_rows = await self._session.execute(
            scoped_select(Behavior, self._actor, Behavior.id, func.count(LogEntry.id))
            .outerjoin(
                LogEntry,
                and_(
                    LogEntry.behavior_id == Behavior.id,
                    LogEntry.org_id == Behavior.org_id,
                    *_log_filter_conditions(filters),
                ),
            )
            .group_by(Behavior.id)
        )
        day = func.date(LogEntry.logged_at)
        daily_rows = await self._session.execute(
            _apply_log_filters(
                scoped_select(LogEntry, self._actor, day, func.count(LogEntry.id)), filters
            )
            .group_by(day)
            .order_by(day.desc())
        )
        totals = await self._session.execute(
            _apply_log_filters(
                scoped_select(
                    LogEntry,
                    self._actor,
                    func.count(LogEntry.id),
                    func.sum(case((LogEntry.incident.is_(True), 1), else_=0)),
                    func.avg(LogEntry.intensity),
                    func.avg(LogEntry.duration_min),
                ),
                filters,
            )
        )
        total_entries, total_incidents, avg_intensity, avg_duration = totals.one()

        return ReportSummary(
            behavior_counts={str(behavior_id): int(n) for behavior_id, n in behavior_rows.all()},
            daily_counts={str(date): int(n) for date, n in daily_rows.all()},
            total_entries=int(total_entries or 0),
            total_incidents=int(total_incidents or 0),
            average_intensity=float(avg_intensity or 0),
            average_duration=float(avg_duration or 0),
        )


def _log_filter_conditions(filters: LogFilters) -> list[Any]:
    conditions: list[Any] = []
    if filters.client_id is not None:
        conditions.append(LogEntry.client_id == filters.client_id)
    if filters.behavior_id is not None:
        conditions.append(LogEntry.behavior_id == filters.behavior_id)
    if filters.date_from is not None:
        conditions.append(LogEntry.logged_at >= filters.date_from)
    if filters.date_to is not None:
        conditions.append(LogEntry.logged_at <= filters.date_to)
    if filters.incident is not None:
        conditions.append(LogEntry.incident.is_(filters.incident))
    return conditions


def _apply_log_filters(stmt: Select[Any], filters: LogFilters) -> Select[Any]:
    conditions = _log_filter_conditions(filters)
    return stmt.where(*conditions) if conditions else stmt


def _to_log_record(
    row: LogEntry,
    client_code: str | None = None,
    client_name: str | None = None,
    behavior_name: str | None = None,
    staff_name: str | None = None,
) -> LogEntryRecord:
    return LogEntryRecord(
        id=row.id,
        org_id=row.org_id,
        client_id=row.client_id,
        behavior_id=row.behavior_id,
        staff_id=row.staff_id,
        intensity=row.intensity,
        duration_min=row.duration_min,
        antecedent=row.antecedent,
        behavior_observed=row.behavior_observed,
        consequence=row.consequence,
        notes=row.notes,
        incident=row.incident,
        logged_at=row.logged_at,
        updated_at=row.updated_at,
        client_code=client_code,
        client_name=client_name,
        behavior_name=behavior_name,
        staff_name=staff_name,
    )


class SqlCommentRepository:
    """SQL repository for log entry comments."""

    def __init__(self, tx: TenantSession) -> None:
        self._session = tx.session
        self._actor = tx.actor

    async def get_comment(self, comment_id: uuid.UUID) -> CommentRecord | None:
        row = await self._get_row(comment_id)
        return _to_comment_record(row) if row else None

    async def _get_row(self, comment_id: uuid.UUID) -> Comment | None:
        result = await self._session.execute(
            scoped_select(Comment, self._actor).where(Comment.id == comment_id)
        )
        return result.scalar_one_or_none()

    async def list_for_log(self, log_id: uuid.UUID) -> list[CommentRecord]:
        """Comments on a log entry, newest first."""
        result = await self._session.execute(
            scoped_select(Comment, self._actor, Comment, User.display_name, User.role)
            .join(User, and_(User.id == Comment.author_id, User.org_id == Comment.org_id))
            .where(Comment.log_id == log_id)
            .order_by(Comment.created_at.desc())
        )
        return [_to_comment_record(*row) for row in result.all()]

    async def create_comment(self, log_id: uuid.UUID, content: str) -> CommentRecord:
        """Add a comment authored by the acting user."""
        row = Comment(
            id=uuid.uuid4(),
            org_id=self._actor.org_id,
            log_id=log_id,
            author_id=self._actor.user_id,
            content=content,
        )
        self._session.add(row)
        await self._session.flush()
        return _to_comment_record(row)

    async def update_comment(self, comment_id: uuid.UUID, content: str) -> CommentRecord | None:
        row = await self._get_row(comment_id)
        if row is None:
            return None
        _apply_changes(row, {"content": content}, frozenset({"content"}))
        await self._session.flush()
        return _to_comment_record(row)

    async def delete_comment(self, comment_id: uuid.UUID) -> bool:
        row = await self._get_row(comment_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True


def _to_comment_record(
    row: Comment, author_name: str | None = None, author_role: str | None = None
) -> CommentRecord:
    return CommentRecord(
        id=row.id,
        org_id=row.org_id,
        log_id=row.log_id,
        author_id=row.author_id,
        content=row.content,
        created_at=row.created_at,
        updated_at=row.updated_at,
        author_name=author_name,
        author_role=author_role,
    )


class SqlAnnouncementRepository:
    """SQL repository for bulletin board announcements."""

    _UPDATABLE = frozenset({"title", "content", "priority", "expires_at"})

    def __init__(self, tx: TenantSession) -> None:
        self._session = tx.session
        self._actor = tx.actor

    async def _get_row(self, announcement_id: uuid.UUID) -> Announcement | None:
        result = await self._session.execute(
            scoped_select(Announcement, self._actor).where(Announcement.id == announcement_id)
        )
        return result.scalar_one_or_none()

    async def get_announcement(self, announcement_id: uuid.UUID) -> AnnouncementRecord | None:
        row = await self._get_row(announcement_id)
        return _to_announcement_record(row) if row else None

    async def list_active(self, now: datetime | None = None) -> list[AnnouncementRecord]:
        """Active, unexpired announcements by priority, then newest first."""
        if now is None:
            now = utcnow()
        priority_rank = case(PRIORITY_ORDER, value=Announcement.priority, else_=len(PRIORITY_ORDER) + 1)
        result = await self._session.execute(
            scoped_select(Announcement, self._actor, Announcement, User.display_name)
            .join(
                User,
                and_(User.id == Announcement.author_id, User.org_id == Announcement.org_id),
            )
            .where(
                Announcement.active.is_(True),
                or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
            )
            .order_by(priority_rank, Announcement.created_at.desc())
        )
        return [_to_announcement_record(*row) for row in result.all()]

    async def create_announcement(self, values: dict[str, Any]) -> AnnouncementRecord:
        row = Announcement(
            id=uuid.uuid4(),
            org_id=self._actor.org_id,
            author_id=self._actor.user_id,
            title=values["title"],
            content=values["content"],
            priority=values.get("priority") or "normal",
            expires_at=values.get("expires_at"),
            active=True,
        )
        self._session.add(row)
        await self._session.flush()
        return _to_announcement_record(row)

    async def update_announcement(
        self, announcement_id: uuid.UUID, changes: dict[str, Any]
    ) -> AnnouncementRecord | None:
        row = await self._get_row(announcement_id)
        if row is None:
            return None
        _apply_changes(row, changes, self._UPDATABLE)
        await self._session.flush()
        return _to_announcement_record(row)

    async def deactivate_announcement(self, announcement_id: uuid.UUID) -> bool:
        row = await self._get_row(announcement_id)
        if row is None:
            return False
        row.active = False
        row.updated_at = utcnow()
        await self._session.flush()
        return True


def _to_announcement_record(
    row: Announcement, author_name: str | None = None
) -> AnnouncementRecord:
    return AnnouncementRecord(
        id=row.id,
        org_id=row.org_id,
        author_id=row.author_id,
        title=row.title,
        content=row.content,
        priority=row.priority,
        expires_at=row.expires_at,
        active=row.active,
        created_at=row.created_at,
        updated_at=row.updated_at,
        author_name=author_name,
    )
