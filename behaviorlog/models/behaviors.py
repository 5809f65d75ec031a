"""Behavior catalog envelopes."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from behaviorlog.models.common import RequestEnvelope, ResponseModel


class CreateBehaviorRequest(RequestEnvelope):
    """Request body for POST /behaviors."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)


class UpdateBehaviorRequest(RequestEnvelope):
    """Request body for PUT /behaviors/{id}."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)


class BehaviorResponse(ResponseModel):
    """Behavior as returned to callers."""

    id: UUID
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime
