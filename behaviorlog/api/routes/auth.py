"""Login, logout and session endpoints."""

from fastapi import APIRouter, Response

from behaviorlog.api.auth import ActorDep, DatabaseDep, RecorderDep, SettingsDep
from behaviorlog.auth.context import ActorContext, Role
from behaviorlog.auth.passwords import dummy_password_hash, verify_password
from behaviorlog.auth.tokens import issue_token
from behaviorlog.config import Settings
from behaviorlog.db.audit import AuditAction, AuditDraft
from behaviorlog.db.repositories import UserRecord
from behaviorlog.db.sql_repositories import SqlUserRepository
from behaviorlog.errors import InvalidCredential, NotFound
from behaviorlog.models.auth import (
    LoginRequest,
    OrgResponse,
    SessionResponse,
    TokenResponse,
    UserResponse,
)
from behaviorlog.models.common import SuccessResponse
from behaviorlog.utils.logging import StructuredSecurityLogger
from behaviorlog.utils.metrics import PrometheusSecurityMetrics

router = APIRouter(prefix="/auth", tags=["auth"])

ENTITY = "auth"

_security_log = StructuredSecurityLogger()
_metrics = PrometheusSecurityMetrics()


def _set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.jwt_ttl_seconds,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
        path="/",
    )


def _session_response(user: UserRecord, token: str | None = None) -> SessionResponse:
    return SessionResponse(
        user=UserResponse.model_validate(user),
        org=OrgResponse(id=user.org_id, name=user.org_name),
        token=token,
    )


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    response: Response,
    database: DatabaseDep,
    recorder: RecorderDep,
    settings: SettingsDep,
) -> SessionResponse:
    """Exchange email and password for a signed credential.

    Unknown email, inactive account and wrong password are indistinguishable
    to the caller.
    """
    async with database.system_session() as session:
        found = await SqlUserRepository.find_for_login(session, body.email.lower())

    encoded = found[1] if found is not None else dummy_password_hash()
    password_ok = verify_password(body.password, encoded)
    if found is None or not password_ok:
        _security_log.log_auth_failure("Invalid email or password")
        _metrics.inc_auth_failure("bad_password")
        raise InvalidCredential("Invalid email or password")

    user, _ = found
    actor = ActorContext(
        org_id=user.org_id, user_id=user.id, role=Role(user.role), email=user.email
    )
    token = issue_token(actor, settings)
    _set_auth_cookie(response, token, settings)

    await recorder.record(actor, AuditDraft(AuditAction.LOGIN, ENTITY, str(user.id)))
    return _session_response(user, token)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    actor: ActorDep,
    recorder: RecorderDep,
    settings: SettingsDep,
) -> SuccessResponse:
    """Clear the auth cookie. Bearer tokens remain valid until they expire."""
    response.delete_cookie(settings.auth_cookie_name, path="/")
    await recorder.record(actor, AuditDraft(AuditAction.LOGOUT, ENTITY, str(actor.user_id)))
    return SuccessResponse()


@router.get("/me", response_model=SessionResponse)
async def me(actor: ActorDep, database: DatabaseDep) -> SessionResponse:
    """Profile of the authenticated user."""
    async with database.tenant_session(actor, read_only=True) as tx:
        user = await SqlUserRepository(tx).get_current()
    if user is None or not user.active:
        raise NotFound("User not found")
    return _session_response(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    response: Response,
    actor: ActorDep,
    database: DatabaseDep,
    settings: SettingsDep,
) -> TokenResponse:
    """Issue a fresh credential for a still-active user.

    Role and organization are re-read, so a changed role takes effect here.
    """
    async with database.tenant_session(actor, read_only=True) as tx:
        user = await SqlUserRepository(tx).get_current()
    if user is None or not user.active:
        raise InvalidCredential("Account is no longer active")

    fresh = ActorContext(
        org_id=user.org_id, user_id=user.id, role=Role(user.role), email=user.email
    )
    token = issue_token(fresh, settings)
    _set_auth_cookie(response, token, settings)
    return TokenResponse(token=token)
