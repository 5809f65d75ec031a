"""Client roster endpoints."""

import uuid

from fastapi import APIRouter, Query, status

from behaviorlog.api.auth import ActorDep, DatabaseDep, RecorderDep
from behaviorlog.auth.guard import Operation, Resource, ensure_allowed
from behaviorlog.db.audit import AuditAction, AuditDraft
from behaviorlog.db.sql_repositories import SqlClientRepository
from behaviorlog.errors import NotFound
from behaviorlog.models.clients import ClientResponse, CreateClientRequest, UpdateClientRequest
from behaviorlog.models.common import SuccessResponse

router = APIRouter(prefix="/clients", tags=["clients"])

ENTITY = Resource.client.value


@router.get("", response_model=list[ClientResponse])
async def list_clients(
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
    include_inactive: bool = Query(False),
) -> list[ClientResponse]:
    """List clients in the caller's organization."""
    ensure_allowed(actor, Resource.client, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        records = await SqlClientRepository(tx).list_clients(include_inactive=include_inactive)

    await recorder.record(actor, AuditDraft(AuditAction.READ, ENTITY))
    return [ClientResponse.model_validate(r) for r in records]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: uuid.UUID,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> ClientResponse:
    """Get one client. Clients of other organizations are reported as absent."""
    ensure_allowed(actor, Resource.client, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        record = await SqlClientRepository(tx).get_client(client_id)
    if record is None:
        raise NotFound("Client not found")

    await recorder.record(actor, AuditDraft(AuditAction.READ, ENTITY, str(client_id)))
    return ClientResponse.model_validate(record)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    body: CreateClientRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> ClientResponse:
    """Add a client to the roster (supervisors only)."""
    ensure_allowed(actor, Resource.client, Operation.create)

    async with database.tenant_session(actor) as tx:
        record = await SqlClientRepository(tx).create_client(body.client_code, body.display_name)

    await recorder.record(
        actor,
        AuditDraft(
            AuditAction.CREATE,
            ENTITY,
            str(record.id),
            {"client_code": record.client_code},
        ),
    )
    return ClientResponse.model_validate(record)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: uuid.UUID,
    body: UpdateClientRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> ClientResponse:
    """Rename or re-code a client (supervisors only)."""
    ensure_allowed(actor, Resource.client, Operation.update)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    async with database.tenant_session(actor) as tx:
        record = await SqlClientRepository(tx).update_client(client_id, changes)
    if record is None:
        raise NotFound("Client not found")

    await recorder.record(
        actor,
        AuditDraft(AuditAction.UPDATE, ENTITY, str(client_id), {"fields": sorted(changes)}),
    )
    return ClientResponse.model_validate(record)


@router.delete("/{client_id}", response_model=SuccessResponse)
async def deactivate_client(
    client_id: uuid.UUID,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> SuccessResponse:
    """Deactivate a client (supervisors only). Existing log entries are kept."""
    ensure_allowed(actor, Resource.client, Operation.delete)

    async with database.tenant_session(actor) as tx:
        found = await SqlClientRepository(tx).deactivate_client(client_id)
    if not found:
        raise NotFound("Client not found")

    await recorder.record(actor, AuditDraft(AuditAction.DELETE, ENTITY, str(client_id)))
    return SuccessResponse()


@router.patch("/{client_id}/deactivate", response_model=SuccessResponse)
async def patch_deactivate_client(
    client_id: uuid.UUID,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> SuccessResponse:
    """Deactivate a client, recorded as an update of its active flag."""
    ensure_allowed(actor, Resource.client, Operation.update)

    async with database.tenant_session(actor) as tx:
        found = await SqlClientRepository(tx).deactivate_client(client_id)
    if not found:
        raise NotFound("Client not found")

    await recorder.record(
        actor,
        AuditDraft(AuditAction.UPDATE, ENTITY, str(client_id), {"action": "deactivated"}),
    )
    return SuccessResponse()
