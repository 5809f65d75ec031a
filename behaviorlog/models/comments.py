"""Comment envelopes."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from behaviorlog.models.common import RequestEnvelope, ResponseModel


class CommentRequest(RequestEnvelope):
    """Request body for creating or editing a comment."""

    content: str = Field(..., min_length=1, max_length=5000)


class CommentResponse(ResponseModel):
    """Comment as returned to callers."""

    id: UUID
    log_id: UUID
    author_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime
    author_name: str | None = None
    author_role: str | None = None
