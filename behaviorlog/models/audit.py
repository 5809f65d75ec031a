"""Audit query and client-side audit envelopes."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field

from behaviorlog.models.common import RequestEnvelope, ResponseModel

# Actions a client may record on its own behalf. Mutations and reads are
# recorded by the server and cannot be forged from a request body.
ClientAuditAction = Literal["EXPORT", "READ"]


class RecordAuditRequest(RequestEnvelope):
    """Request body for POST /audit."""

    action: ClientAuditAction
    entity_type: str = Field(..., min_length=1, max_length=100)
    entity_id: str | None = Field(None, max_length=200)
    metadata: dict[str, Any] | None = None


class AuditEntryResponse(ResponseModel):
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
