"""Credential verification and issuance.

Verification checks signature and expiry only and never touches the
database. Every failure is reported as InvalidCredential; there is no
fallback identity.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from behaviorlog.auth.context import ActorContext
from behaviorlog.config import Settings
from behaviorlog.errors import InvalidCredential

logger = logging.getLogger(__name__)

ActorClaims = dict[str, Any]

_REQUIRED_CLAIMS = ["exp", "sub"]


def _uses_key_pair(settings: Settings) -> bool:
    return settings.jwt_algorithm.upper().startswith(("RS", "ES", "PS"))


def _verification_key(settings: Settings) -> str:
    if _uses_key_pair(settings):
        return settings.jwt_public_key_pem
    return settings.jwt_secret


def _signing_key(settings: Settings) -> str:
    if _uses_key_pair(settings):
        return settings.jwt_private_key_pem
    return settings.jwt_secret


def verify_token(token: str | None, settings: Settings) -> ActorClaims:
    """Verify a bearer credential and return its claims.

    Args:
        token: Raw token from the Authorization header or auth cookie
        settings: Application settings holding the verification key

    Returns:
        Claims bundle (``sub``, ``org_id``, ``role``, ``email``, ``exp``)

    Raises:
        InvalidCredential: Missing token, bad signature, expired, or no
            verification key configured
    """
    if not token:
        raise InvalidCredential("Missing authorization token")

    key = _verification_key(settings)
    if not key:
        logger.error("Token verification key is not configured")
        raise InvalidCredential("Invalid token")

    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=[settings.jwt_algorithm],
            options={"require": _REQUIRED_CLAIMS, "verify_aud": False},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidCredential("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidCredential("Invalid token") from e

    return claims


def issue_token(actor: ActorContext, settings: Settings, now: datetime | None = None) -> str:
    """Sign a credential for an authenticated user.

    Raises:
        RuntimeError: If no signing key is configured.
    """
    key = _signing_key(settings)
    if not key:
        raise RuntimeError("JWT signing key is not configured")

    if now is None:
        now = datetime.now(UTC)

    payload = {
        "sub": str(actor.user_id),
        "org_id": str(actor.org_id),
        "role": actor.role.value,
        "email": actor.email,
        "iat": now,
        "exp": now + timedelta(seconds=settings.jwt_ttl_seconds),
    }
    return jwt.encode(payload, key, algorithm=settings.jwt_algorithm)
