"""Request authentication and shared route dependencies.

Every route except login and health depends on ``get_actor``. There is no
anonymous fallback: a request without a valid credential is rejected before
any data session is opened.
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from behaviorlog.auth.context import ActorContext, build_actor_context
from behaviorlog.auth.tokens import verify_token
from behaviorlog.config import Settings
from behaviorlog.db.audit import AuditRecorder
from behaviorlog.db.session import Database
from behaviorlog.errors import InvalidCredential, MalformedClaims
from behaviorlog.utils.logging import StructuredSecurityLogger
from behaviorlog.utils.metrics import PrometheusSecurityMetrics

_security_log = StructuredSecurityLogger()
_metrics = PrometheusSecurityMetrics()


def extract_token(request: Request, authorization: str | None) -> str | None:
    """Read the bearer token from the Authorization header or the auth cookie.

    The header wins when both are present.
    """
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise InvalidCredential("Invalid authorization header format")
        return token.strip()

    settings: Settings = request.app.state.settings
    return request.cookies.get(settings.auth_cookie_name)


async def get_actor(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> ActorContext:
    """Authenticate the request and return its actor.

    Args:
        request: Incoming request
        authorization: Authorization header (``Bearer <token>``)

    Returns:
        ActorContext bound to this request

    Raises:
        InvalidCredential: Missing, malformed, badly signed or expired token
        MalformedClaims: Token verified but its claims are unusable
    """
    try:
        token = extract_token(request, authorization)
        claims = verify_token(token, request.app.state.settings)
        actor = build_actor_context(claims)
    except (InvalidCredential, MalformedClaims) as e:
        _security_log.log_auth_failure(e.message)
        _metrics.inc_auth_failure(e.code)
        raise

    request.state.actor = actor
    return actor


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_recorder(request: Request) -> AuditRecorder:
    return request.app.state.recorder


ActorDep = Annotated[ActorContext, Depends(get_actor)]
SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
DatabaseDep = Annotated[Database, Depends(get_database)]
RecorderDep = Annotated[AuditRecorder, Depends(get_recorder)]
