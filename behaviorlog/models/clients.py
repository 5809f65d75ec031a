"""Client roster envelopes."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from behaviorlog.models.common import RequestEnvelope, ResponseModel


class CreateClientRequest(RequestEnvelope):
    """Request body for POST /clients."""

    client_code: str = Field(..., min_length=1, max_length=64)
    display_name: str = Field(..., min_length=1, max_length=200)


class UpdateClientRequest(RequestEnvelope):
    """Request body for PUT /clients/{id}."""

    client_code: str | None = Field(None, min_length=1, max_length=64)
    display_name: str | None = Field(None, min_length=1, max_length=200)


class ClientResponse(ResponseModel):
    """Client as returned to callers."""

    id: UUID
    client_code: str
    display_name: str
    active: bool
    created_at: datetime
    updated_at: datetime
