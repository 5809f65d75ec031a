"""Behavior log entry endpoints."""

import uuid

from fastapi import APIRouter, status

from behaviorlog.api.auth import ActorDep, DatabaseDep, RecorderDep
from behaviorlog.api.filters import LogFiltersDep, describe_filters
from behaviorlog.auth.guard import Operation, Resource, ensure_allowed
from behaviorlog.db.audit import AuditAction, AuditDraft
from behaviorlog.db.sql_repositories import SqlLogEntryRepository
from behaviorlog.errors import NotFound
from behaviorlog.models.common import SuccessResponse
from behaviorlog.models.logs import CreateLogEntryRequest, LogEntryResponse, UpdateLogEntryRequest

router = APIRouter(prefix="/logs", tags=["logs"])

ENTITY = Resource.log_entry.value


@router.get("", response_model=list[LogEntryResponse])
async def list_logs(
    filters: LogFiltersDep,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> list[LogEntryResponse]:
    """List log entries newest first."""
    ensure_allowed(actor, Resource.log_entry, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        records = await SqlLogEntryRepository(tx).list_entries(filters)

    await recorder.record(
        actor,
        AuditDraft(AuditAction.READ, ENTITY, metadata={"filters": describe_filters(filters)}),
    )
    return [LogEntryResponse.model_validate(r) for r in records]


@router.get("/{log_id}", response_model=LogEntryResponse)
async def get_log(
    log_id: uuid.UUID,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> LogEntryResponse:
    ensure_allowed(actor, Resource.log_entry, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        record = await SqlLogEntryRepository(tx).get_entry(log_id)
    if record is None:
        raise NotFound("Log entry not found")

    await recorder.record(actor, AuditDraft(AuditAction.READ, ENTITY, str(log_id)))
    return LogEntryResponse.model_validate(record)


@router.post("", response_model=LogEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_log(
    body: CreateLogEntryRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> LogEntryResponse:
    """Record an observation attributed to the caller.

    The client and behavior must belong to the caller's organization.
    """
    ensure_allowed(actor, Resource.log_entry, Operation.create)

    async with database.tenant_session(actor) as tx:
        record = await SqlLogEntryRepository(tx).create_entry(body.model_dump())

    await recorder.record(
        actor,
        AuditDraft(
            AuditAction.CREATE,
            ENTITY,
            str(record.id),
            {
                "client_id": str(record.client_id),
                "behavior_id": str(record.behavior_id),
                "intensity": record.intensity,
                "incident": record.incident,
            },
        ),
    )
    return LogEntryResponse.model_validate(record)


@router.put("/{log_id}", response_model=LogEntryResponse)
async def update_log(
    log_id: uuid.UUID,
    body: UpdateLogEntryRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> LogEntryResponse:
    """Correct a log entry (supervisors only)."""
    ensure_allowed(actor, Resource.log_entry, Operation.update)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    async with database.tenant_session(actor) as tx:
        record = await SqlLogEntryRepository(tx).update_entry(log_id, changes)
    if record is None:
        raise NotFound("Log entry not found")

    await recorder.record(
        actor,
        AuditDraft(AuditAction.UPDATE, ENTITY, str(log_id), {"fields": sorted(changes)}),
    )
    return LogEntryResponse.model_validate(record)


@router.delete("/{log_id}", response_model=SuccessResponse)
async def delete_log(
    log_id: uuid.UUID,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> SuccessResponse:
    """Delete a log entry and its comments (supervisors only)."""
    ensure_allowed(actor, Resource.log_entry, Operation.delete)

    async with database.tenant_session(actor) as tx:
        found = await SqlLogEntryRepository(tx).delete_entry(log_id)
    if not found:
        raise NotFound("Log entry not found")

    await recorder.record(actor, AuditDraft(AuditAction.DELETE, ENTITY, str(log_id)))
    return SuccessResponse()
