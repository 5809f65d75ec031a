"""Unit tests for the authorization guard policy table."""

import uuid

import pytest

from behaviorlog.auth.context import ActorContext, Role
from behaviorlog.auth.guard import POLICY, Operation, Resource, allow, ensure_allowed
from behaviorlog.errors import Forbidden, InvalidCredential

ORG = uuid.uuid4()
STAFF = ActorContext(org_id=ORG, user_id=uuid.uuid4(), role=Role.staff)
OTHER_STAFF = ActorContext(org_id=ORG, user_id=uuid.uuid4(), role=Role.staff)
SUPERVISOR = ActorContext(org_id=ORG, user_id=uuid.uuid4(), role=Role.supervisor)


@pytest.mark.parametrize(
    ("resource", "operation"),
    [
        (Resource.client, Operation.create),
        (Resource.client, Operation.update),
        (Resource.client, Operation.delete),
        (Resource.behavior, Operation.create),
        (Resource.behavior, Operation.update),
        (Resource.behavior, Operation.delete),
        (Resource.log_entry, Operation.update),
        (Resource.log_entry, Operation.delete),
        (Resource.audit, Operation.read),
        (Resource.report, Operation.export),
    ],
)
def test_supervisor_only_operations(resource: Resource, operation: Operation) -> None:
    assert not allow(STAFF, resource, operation)
    assert allow(SUPERVISOR, resource, operation)


@pytest.mark.parametrize(
    ("resource", "operation"),
    [
        (Resource.client, Operation.read),
        (Resource.behavior, Operation.read),
        (Resource.log_entry, Operation.create),
        (Resource.log_entry, Operation.read),
        (Resource.comment, Operation.create),
        (Resource.comment, Operation.read),
        (Resource.announcement, Operation.create),
        (Resource.announcement, Operation.read),
        (Resource.audit, Operation.create),
        (Resource.report, Operation.read),
    ],
)
def test_member_operations(resource: Resource, operation: Operation) -> None:
    assert allow(STAFF, resource, operation)
    assert allow(SUPERVISOR, resource, operation)


@pytest.mark.parametrize("resource", [Resource.comment, Resource.announcement])
@pytest.mark.parametrize("operation", [Operation.update, Operation.delete])
def test_owner_or_supervisor(resource: Resource, operation: Operation) -> None:
    assert allow(STAFF, resource, operation, owner_id=STAFF.user_id)
    assert not allow(STAFF, resource, operation, owner_id=OTHER_STAFF.user_id)
    assert not allow(STAFF, resource, operation, owner_id=None)
    assert allow(SUPERVISOR, resource, operation, owner_id=OTHER_STAFF.user_id)


def test_pairs_missing_from_policy_are_denied() -> None:
    assert (Resource.audit, Operation.delete) not in POLICY
    assert not allow(SUPERVISOR, Resource.audit, Operation.delete)
    assert not allow(SUPERVISOR, Resource.audit, Operation.update)
    assert not allow(SUPERVISOR, Resource.client, Operation.export)


def test_no_actor_is_never_allowed() -> None:
    assert not allow(None, Resource.client, Operation.read)


def test_ensure_allowed_raises_forbidden_on_denial() -> None:
    with pytest.raises(Forbidden):
        ensure_allowed(STAFF, Resource.log_entry, Operation.delete)


def test_ensure_allowed_without_actor_is_authentication_failure() -> None:
    with pytest.raises(InvalidCredential):
        ensure_allowed(None, Resource.client, Operation.read)


def test_ensure_allowed_passes_silently() -> None:
    ensure_allowed(SUPERVISOR, Resource.log_entry, Operation.delete)
