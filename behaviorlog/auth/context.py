"""Actor context for tenancy and role enforcement."""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from behaviorlog.errors import MalformedClaims


class Role(str, Enum):
    """The two recognized staff roles."""

    staff = "staff"
    supervisor = "supervisor"


@dataclass(frozen=True)
class ActorContext:
    """Authenticated identity bound to one request.

    The only source of truth for tenant and role once a request is
    authenticated. Never persisted and never rebuilt from request bodies.
    """

    org_id: UUID
    user_id: UUID
    role: Role
    email: str = ""

    @property
    def is_supervisor(self) -> bool:
        return self.role is Role.supervisor


def _require_uuid(claims: Mapping[str, Any], key: str) -> UUID:
    value = claims.get(key)
    if value is None or value == "":
        raise MalformedClaims(f"Credential is missing the '{key}' claim")
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError) as e:
        raise MalformedClaims(f"Claim '{key}' is not a valid identifier") from e


def build_actor_context(claims: Mapping[str, Any]) -> ActorContext:
    """Turn verified claims into an ActorContext.

    Args:
        claims: Verified claims bundle with ``sub``, ``org_id``, ``role`` and
            optionally ``email``

    Returns:
        Immutable ActorContext

    Raises:
        MalformedClaims: If a required claim is missing or the role is not
            one of the recognized values
    """
    user_id = _require_uuid(claims, "sub")
    org_id = _require_uuid(claims, "org_id")

    raw_role = claims.get("role")
    try:
        role = Role(raw_role)
    except ValueError as e:
        raise MalformedClaims("Credential carries an unrecognized role") from e

    email = claims.get("email") or ""
    if not isinstance(email, str):
        raise MalformedClaims("Claim 'email' must be a string")

    return ActorContext(org_id=org_id, user_id=user_id, role=role, email=email)
