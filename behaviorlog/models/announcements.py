"""Announcement envelopes."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from behaviorlog.models.common import RequestEnvelope, ResponseModel

Priority = Literal["urgent", "high", "normal", "low"]


class CreateAnnouncementRequest(RequestEnvelope):
    """Request body for POST /announcements."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)
    priority: Priority = "normal"
    expires_at: datetime | None = None


class UpdateAnnouncementRequest(RequestEnvelope):
    """Request body for PUT /announcements/{id}."""

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1, max_length=10000)
    priority: Priority | None = None
    expires_at: datetime | None = None


class AnnouncementResponse(ResponseModel):
    """Announcement as returned to callers."""

    id: UUID
    author_id: UUID
    title: str
    content: str
    priority: Priority
    expires_at: datetime | None
    active: bool
    created_at: datetime
    updated_at: datetime
    author_name: str | None = None
