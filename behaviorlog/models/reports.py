"""Report envelopes."""

from pydantic import BaseModel

from behaviorlog.models.logs import LogEntryResponse


class SummaryResponse(BaseModel):
    """Aggregate counts over filtered log entries."""

    behavior_counts: dict[str, int]
    daily_counts: dict[str, int]
    total_entries: int
    total_incidents: int
    average_intensity: float
    average_duration: float


class ExportResponse(BaseModel):
    """Rows for an export rendered by a downstream collaborator."""

    record_count: int
    rows: list[LogEntryResponse]
