"""Models package - re-exports for convenience."""

from behaviorlog.models.announcements import (
    AnnouncementResponse,
    CreateAnnouncementRequest,
    UpdateAnnouncementRequest,
)
from behaviorlog.models.audit import AuditEntryResponse, RecordAuditRequest
from behaviorlog.models.auth import LoginRequest, SessionResponse, TokenResponse, UserResponse
from behaviorlog.models.behaviors import (
    BehaviorResponse,
    CreateBehaviorRequest,
    UpdateBehaviorRequest,
)
from behaviorlog.models.clients import ClientResponse, CreateClientRequest, UpdateClientRequest
from behaviorlog.models.comments import CommentRequest, CommentResponse
from behaviorlog.models.common import RequestEnvelope, SuccessResponse
from behaviorlog.models.logs import (
    CreateLogEntryRequest,
    LogEntryResponse,
    UpdateLogEntryRequest,
)
from behaviorlog.models.reports import ExportResponse, SummaryResponse

__all__ = [
    "AnnouncementResponse",
    "AuditEntryResponse",
    "BehaviorResponse",
    "ClientResponse",
    "CommentRequest",
    "CommentResponse",
    "CreateAnnouncementRequest",
    "CreateBehaviorRequest",
    "CreateClientRequest",
    "CreateLogEntryRequest",
    "ExportResponse",
    "LogEntryResponse",
    "LoginRequest",
    "RecordAuditRequest",
    "RequestEnvelope",
    "SessionResponse",
    "SuccessResponse",
    "SummaryResponse",
    "TokenResponse",
    "UpdateAnnouncementRequest",
    "UpdateBehaviorRequest",
    "UpdateClientRequest",
    "UpdateLogEntryRequest",
    "UserResponse",
]
