"""Records and filters returned by and passed to the repositories."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass
class UserRecord:
    """User account record."""

    id: UUID
    org_id: UUID
    email: str
    display_name: str
    role: str
    active: bool
    org_name: str | None = None


@dataclass
class ClientRecord:
    """Client roster record."""

    id: UUID
    org_id: UUID
    client_code: str
    display_name: str
    active: bool
    created_at: datetime
    updated_at: datetime


@dataclass
class BehaviorRecord:
    """Behavior catalog record."""

    id: UUID
    org_id: UUID
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


@dataclass
class LogEntryRecord:
    """Log entry with display names resolved inside the tenant."""

    id: UUID
    org_id: UUID
    client_id: UUID
    behavior_id: UUID
    staff_id: UUID
    intensity: int
    duration_min: int | None
    antecedent: str | None
    behavior_observed: str | None
    consequence: str | None
    notes: str | None
    incident: bool
    logged_at: datetime
    updated_at: datetime
    client_code: str | None = None
    client_name: str | None = None
    behavior_name: str | None = None
    staff_name: str | None = None


@dataclass
class LogFilters:
    """Filters for listing and exporting log entries."""

    client_id: UUID | None = None
    behavior_id: UUID | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    incident: bool | None = None
    limit: int | None = None


@dataclass
class CommentRecord:
    """Comment record."""

    id: UUID
    org_id: UUID
    log_id: UUID
    author_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime
    author_name: str | None = None
    author_role: str | None = None


@dataclass
class AnnouncementRecord:
    """Announcement record."""

    id: UUID
    org_id: UUID
    author_id: UUID
    title: str
    content: str
    priority: str
    expires_at: datetime | None
    active: bool
    created_at: datetime
    updated_at: datetime
    author_name: str | None = None


@dataclass
class ReportSummary:
    """Aggregate counts over a filtered set of log entries."""

    behavior_counts: dict[str, int]
    daily_counts: dict[str, int]
    total_entries: int
    total_incidents: int
    average_intensity: float
    average_duration: float


@dataclass
class AuditRecord:
    """Persisted audit entry."""

    id: UUID
    org_id: UUID
    actor_id: UUID
    action: str
    entity_type: str
    entity_id: str | None
    metadata: dict[str, Any] | None
    timestamp: datetime
    actor_name: str | None = None


@dataclass
class AuditFilters:
    """Filters for the audit query interface."""

    time_from: datetime | None = None
    time_to: datetime | None = None
    action: str | None = None
    entity_type: str | None = None
    limit: int = 100
