"""Login and identity envelopes."""

from uuid import UUID

from pydantic import BaseModel, Field

from behaviorlog.models.common import RequestEnvelope, ResponseModel


class LoginRequest(RequestEnvelope):
    """Request body for POST /auth/login."""

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=1024)


class UserResponse(ResponseModel):
    """Authenticated user profile."""

    id: UUID
    org_id: UUID
    email: str
    display_name: str
    role: str


class OrgResponse(BaseModel):
    """Organization summary."""

    id: UUID
    name: str | None


class SessionResponse(BaseModel):
    """Response for login and /auth/me."""

    user: UserResponse
    org: OrgResponse
    token: str | None = None


class TokenResponse(BaseModel):
    """Response for POST /auth/refresh."""

    token: str
