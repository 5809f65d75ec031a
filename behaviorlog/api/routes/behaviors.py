"""Behavior catalog endpoints."""

import uuid

from fastapi import APIRouter, status

from behaviorlog.api.auth import ActorDep, DatabaseDep, RecorderDep
from behaviorlog.auth.guard import Operation, Resource, ensure_allowed
from behaviorlog.db.audit import AuditAction, AuditDraft
from behaviorlog.db.sql_repositories import SqlBehaviorRepository
from behaviorlog.errors import NotFound
from behaviorlog.models.behaviors import (
    BehaviorResponse,
    CreateBehaviorRequest,
    UpdateBehaviorRequest,
)
from behaviorlog.models.common import SuccessResponse

router = APIRouter(prefix="/behaviors", tags=["behaviors"])

ENTITY = Resource.behavior.value


@router.get("", response_model=list[BehaviorResponse])
async def list_behaviors(actor: ActorDep, database: DatabaseDep) -> list[BehaviorResponse]:
    """List the organization's behavior catalog."""
    ensure_allowed(actor, Resource.behavior, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        records = await SqlBehaviorRepository(tx).list_behaviors()
    return [BehaviorResponse.model_validate(r) for r in records]


@router.get("/{behavior_id}", response_model=BehaviorResponse)
async def get_behavior(
    behavior_id: uuid.UUID, actor: ActorDep, database: DatabaseDep
) -> BehaviorResponse:
    ensure_allowed(actor, Resource.behavior, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        record = await SqlBehaviorRepository(tx).get_behavior(behavior_id)
    if record is None:
        raise NotFound("Behavior not found")
    return BehaviorResponse.model_validate(record)


@router.post("", response_model=BehaviorResponse, status_code=status.HTTP_201_CREATED)
async def create_behavior(
    body: CreateBehaviorRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> BehaviorResponse:
    """Add a behavior to the catalog (supervisors only)."""
    ensure_allowed(actor, Resource.behavior, Operation.create)

    async with database.tenant_session(actor) as tx:
        record = await SqlBehaviorRepository(tx).create_behavior(body.name, body.description)

    await recorder.record(
        actor, AuditDraft(AuditAction.CREATE, ENTITY, str(record.id), {"name": record.name})
    )
    return BehaviorResponse.model_validate(record)


@router.put("/{behavior_id}", response_model=BehaviorResponse)
async def update_behavior(
    behavior_id: uuid.UUID,
    body: UpdateBehaviorRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> BehaviorResponse:
    """Edit a catalog entry (supervisors only)."""
    ensure_allowed(actor, Resource.behavior, Operation.update)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    async with database.tenant_session(actor) as tx:
        record = await SqlBehaviorRepository(tx).update_behavior(behavior_id, changes)
    if record is None:
        raise NotFound("Behavior not found")

    await recorder.record(
        actor,
        AuditDraft(AuditAction.UPDATE, ENTITY, str(behavior_id), {"fields": sorted(changes)}),
    )
    return BehaviorResponse.model_validate(record)


@router.delete("/{behavior_id}", response_model=SuccessResponse)
async def delete_behavior(
    behavior_id: uuid.UUID,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> SuccessResponse:
    """Remove a behavior from the catalog (supervisors only).

    A behavior still referenced by log entries cannot be removed (409).
    """
    ensure_allowed(actor, Resource.behavior, Operation.delete)

    async with database.tenant_session(actor) as tx:
        found = await SqlBehaviorRepository(tx).delete_behavior(behavior_id)
    if not found:
        raise NotFound("Behavior not found")

    await recorder.record(actor, AuditDraft(AuditAction.DELETE, ENTITY, str(behavior_id)))
    return SuccessResponse()
