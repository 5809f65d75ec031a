"""Authorization guard - one policy table for every route.

Rules are looked up by (resource, operation). A pair missing from the table
is denied, as is any request without an authenticated actor.
"""

from enum import Enum
from uuid import UUID

from behaviorlog.auth.context import ActorContext, Role
from behaviorlog.errors import Forbidden, InvalidCredential
from behaviorlog.utils.logging import StructuredSecurityLogger
from behaviorlog.utils.metrics import PrometheusSecurityMetrics


class Resource(str, Enum):
    """Kinds of protected resources."""

    client = "clients"
    behavior = "behaviors"
    log_entry = "logs"
    comment = "comments"
    announcement = "announcements"
    audit = "audit"
    report = "reports"


class Operation(str, Enum):
    """Operations checked by the guard."""

    create = "create"
    read = "read"
    update = "update"
    delete = "delete"
    export = "export"


class Rule(str, Enum):
    """Who may perform an operation."""

    member = "member"
    supervisor = "supervisor"
    owner_or_supervisor = "owner_or_supervisor"


_REFERENCE_DATA = {
    Operation.create: Rule.supervisor,
    Operation.read: Rule.member,
    Operation.update: Rule.supervisor,
    Operation.delete: Rule.supervisor,
}

_OWNED_CONTENT = {
    Operation.create: Rule.member,
    Operation.read: Rule.member,
    Operation.update: Rule.owner_or_supervisor,
    Operation.delete: Rule.owner_or_supervisor,
}

POLICY: dict[tuple[Resource, Operation], Rule] = {
    **{(Resource.client, op): rule for op, rule in _REFERENCE_DATA.items()},
    **{(Resource.behavior, op): rule for op, rule in _REFERENCE_DATA.items()},
    (Resource.log_entry, Operation.create): Rule.member,
    (Resource.log_entry, Operation.read): Rule.member,
    (Resource.log_entry, Operation.update): Rule.supervisor,
    (Resource.log_entry, Operation.delete): Rule.supervisor,
    **{(Resource.comment, op): rule for op, rule in _OWNED_CONTENT.items()},
    **{(Resource.announcement, op): rule for op, rule in _OWNED_CONTENT.items()},
    (Resource.audit, Operation.read): Rule.supervisor,
    (Resource.audit, Operation.create): Rule.member,
    (Resource.report, Operation.read): Rule.member,
    (Resource.report, Operation.export): Rule.supervisor,
}

_security_log = StructuredSecurityLogger()
_metrics = PrometheusSecurityMetrics()


def allow(
    actor: ActorContext | None,
    resource: Resource,
    operation: Operation,
    owner_id: UUID | None = None,
) -> bool:
    """Decide whether an actor may perform an operation.

    Args:
        actor: Authenticated actor, or None when unauthenticated
        resource: Resource kind being acted on
        operation: Operation being attempted
        owner_id: Author of the target resource, for owner-or-supervisor rules

    Returns:
        True if allowed
    """
    if actor is None:
        return False

    rule = POLICY.get((resource, operation))
    if rule is None:
        return False

    if rule is Rule.member:
        return actor.role in (Role.staff, Role.supervisor)
    if rule is Rule.supervisor:
        return actor.role is Role.supervisor
    # owner_or_supervisor
    if actor.role is Role.supervisor:
        return True
    return owner_id is not None and owner_id == actor.user_id


def ensure_allowed(
    actor: ActorContext | None,
    resource: Resource,
    operation: Operation,
    owner_id: UUID | None = None,
) -> None:
    """Raise Forbidden unless ``allow`` permits the operation.

    A missing actor is an authentication failure, not a denial.

    Denials are logged and counted. They are never written to the audit trail
    as the attempted action.
    """
    if actor is None:
        raise InvalidCredential()

    if allow(actor, resource, operation, owner_id):
        return

    _security_log.log_denial(actor, resource.value, operation.value)
    _metrics.inc_denial(resource.value, operation.value)
    raise Forbidden()
