"""Unit tests for building the actor context from verified claims."""

import uuid

import pytest

from behaviorlog.auth.context import ActorContext, Role, build_actor_context
from behaviorlog.errors import MalformedClaims


def _claims(**overrides: object) -> dict[str, object]:
    claims: dict[str, object] = {
        "sub": str(uuid.uuid4()),
        "org_id": str(uuid.uuid4()),
        "role": "staff",
        "email": "staff@example.com",
    }
    claims.update(overrides)
    return claims


def test_build_actor_context_from_valid_claims() -> None:
    claims = _claims(role="supervisor")

    actor = build_actor_context(claims)

    assert actor.user_id == uuid.UUID(str(claims["sub"]))
    assert actor.org_id == uuid.UUID(str(claims["org_id"]))
    assert actor.role is Role.supervisor
    assert actor.is_supervisor
    assert actor.email == "staff@example.com"


def test_email_is_optional() -> None:
    claims = _claims()
    del claims["email"]

    assert build_actor_context(claims).email == ""


@pytest.mark.parametrize("missing", ["sub", "org_id", "role"])
def test_missing_claim_is_malformed(missing: str) -> None:
    claims = _claims()
    del claims[missing]

    with pytest.raises(MalformedClaims):
        build_actor_context(claims)


@pytest.mark.parametrize(
    "overrides",
    [
        {"org_id": "not-a-uuid"},
        {"sub": ""},
        {"role": "admin"},
        {"role": "Supervisor"},
        {"email": 42},
    ],
)
def test_invalid_claims_are_malformed(overrides: dict[str, object]) -> None:
    with pytest.raises(MalformedClaims):
        build_actor_context(_claims(**overrides))


def test_actor_context_is_immutable() -> None:
    actor = build_actor_context(_claims())

    with pytest.raises(AttributeError):
        actor.org_id = uuid.uuid4()  # type: ignore[misc]

    assert isinstance(actor, ActorContext)
