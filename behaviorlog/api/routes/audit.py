"""Audit query endpoints (supervisors) and client-side audit recording."""

from datetime import datetime

from fastapi import APIRouter, Query, status

from behaviorlog.api.auth import ActorDep, DatabaseDep, RecorderDep, SettingsDep
from behaviorlog.auth.guard import Operation, Resource, ensure_allowed
from behaviorlog.db.audit import (
    AuditAction,
    AuditDraft,
    distinct_actions,
    distinct_entity_types,
    query_audit,
)
from behaviorlog.db.repositories import AuditFilters
from behaviorlog.models.audit import AuditEntryResponse, RecordAuditRequest

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=list[AuditEntryResponse])
async def list_audit(
    actor: ActorDep,
    database: DatabaseDep,
    settings: SettingsDep,
    time_from: datetime | None = Query(None, alias="from"),
    time_to: datetime | None = Query(None, alias="to"),
    action: str | None = Query(None),
    entity_type: str | None = Query(None),
    limit: int | None = Query(None, ge=1),
) -> list[AuditEntryResponse]:
    """Audit entries for the caller's organization, newest first.

    The page size is capped by ``audit_page_size_max``.
    """
    ensure_allowed(actor, Resource.audit, Operation.read)

    page_size = min(limit or settings.audit_page_size_default, settings.audit_page_size_max)
    filters = AuditFilters(
        time_from=time_from,
        time_to=time_to,
        action=action,
        entity_type=entity_type,
        limit=page_size,
    )
    async with database.tenant_session(actor, read_only=True) as tx:
        records = await query_audit(tx, filters)
    return [AuditEntryResponse.model_validate(r) for r in records]


@router.get("/actions", response_model=list[str])
async def list_actions(actor: ActorDep, database: DatabaseDep) -> list[str]:
    ensure_allowed(actor, Resource.audit, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        return await distinct_actions(tx)


@router.get("/entities", response_model=list[str])
async def list_entity_types(actor: ActorDep, database: DatabaseDep) -> list[str]:
    ensure_allowed(actor, Resource.audit, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        return await distinct_entity_types(tx)


@router.post("", response_model=AuditEntryResponse, status_code=status.HTTP_201_CREATED)
async def record_audit(
    body: RecordAuditRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> AuditEntryResponse:
    """Record a client-side event, such as exporting a locally rendered report.

    Organization and actor always come from the authenticated caller.
    """
    ensure_allowed(actor, Resource.audit, Operation.create)

    draft = AuditDraft(
        AuditAction(body.action),
        body.entity_type,
        body.entity_id,
        body.metadata,
    )
    async with database.tenant_session(actor) as tx:
        record = await recorder.write(tx, draft)
    return AuditEntryResponse.model_validate(record)
