"""Behavior log entry envelopes."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from behaviorlog.models.common import RequestEnvelope, ResponseModel


class CreateLogEntryRequest(RequestEnvelope):
    """Request body for POST /logs.

    The entry is attributed to the authenticated actor; no staff id is accepted.
    """

    client_id: UUID
    behavior_id: UUID
    intensity: int = Field(..., ge=1, le=5)
    duration_min: int | None = Field(None, ge=0)
    antecedent: str | None = None
    behavior_observed: str | None = None
    consequence: str | None = None
    notes: str | None = None
    incident: bool = False


class UpdateLogEntryRequest(RequestEnvelope):
    """Request body for PUT /logs/{id} (supervisors only)."""

    client_id: UUID | None = None
    behavior_id: UUID | None = None
    intensity: int | None = Field(None, ge=1, le=5)
    duration_min: int | None = Field(None, ge=0)
    antecedent: str | None = None
    behavior_observed: str | None = None
    consequence: str | None = None
    notes: str | None = None
    incident: bool | None = None


class LogEntryResponse(ResponseModel):
    """Log entry as returned to callers."""

    id: UUID
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
