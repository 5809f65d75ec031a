"""Bulletin board endpoints."""

import uuid

from fastapi import APIRouter, status

from behaviorlog.api.auth import ActorDep, DatabaseDep, RecorderDep
from behaviorlog.auth.guard import Operation, Resource, ensure_allowed
from behaviorlog.db.audit import AuditAction, AuditDraft
from behaviorlog.db.sql_repositories import SqlAnnouncementRepository, SqlUserRepository
from behaviorlog.errors import NotFound
from behaviorlog.models.announcements import (
    AnnouncementResponse,
    CreateAnnouncementRequest,
    UpdateAnnouncementRequest,
)
from behaviorlog.models.common import SuccessResponse

router = APIRouter(prefix="/announcements", tags=["announcements"])

ENTITY = Resource.announcement.value
NOTIFICATION_ENTITY = "announcement_created"


@router.get("", response_model=list[AnnouncementResponse])
async def list_announcements(
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> list[AnnouncementResponse]:
    """Active, unexpired announcements, most urgent first."""
    ensure_allowed(actor, Resource.announcement, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        records = await SqlAnnouncementRepository(tx).list_active()

    await recorder.record(actor, AuditDraft(AuditAction.READ, ENTITY))
    return [AnnouncementResponse.model_validate(r) for r in records]


@router.post("", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    body: CreateAnnouncementRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> AnnouncementResponse:
    """Post an announcement and notify members who opted in."""
    ensure_allowed(actor, Resource.announcement, Operation.create)

    async with database.tenant_session(actor) as tx:
        record = await SqlAnnouncementRepository(tx).create_announcement(body.model_dump())
        recipients = await SqlUserRepository(tx).notification_recipients()

    await recorder.record(
        actor,
        AuditDraft(
            AuditAction.CREATE,
            ENTITY,
            str(record.id),
            {"title": record.title, "priority": record.priority},
        ),
    )
    await recorder.record_many(
        actor,
        [
            AuditDraft(
                AuditAction.NOTIFICATION,
                NOTIFICATION_ENTITY,
                str(record.id),
                {"announcement_id": str(record.id), "title": record.title, "recipient_id": str(r)},
            )
            for r in recipients
        ],
    )
    return AnnouncementResponse.model_validate(record)


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: uuid.UUID,
    body: UpdateAnnouncementRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> AnnouncementResponse:
    """Edit an announcement (author or supervisor)."""
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    async with database.tenant_session(actor) as tx:
        repo = SqlAnnouncementRepository(tx)
        existing = await repo.get_announcement(announcement_id)
        if existing is None:
            raise NotFound("Announcement not found")
        ensure_allowed(
            actor, Resource.announcement, Operation.update, owner_id=existing.author_id
        )
        record = await repo.update_announcement(announcement_id, changes)
    if record is None:
        raise NotFound("Announcement not found")

    await recorder.record(
        actor,
        AuditDraft(AuditAction.UPDATE, ENTITY, str(announcement_id), {"fields": sorted(changes)}),
    )
    return AnnouncementResponse.model_validate(record)


@router.delete("/{announcement_id}", response_model=SuccessResponse)
async def deactivate_announcement(
    announcement_id: uuid.UUID,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> SuccessResponse:
    """Take an announcement off the board (author or supervisor)."""
    async with database.tenant_session(actor) as tx:
        repo = SqlAnnouncementRepository(tx)
        existing = await repo.get_announcement(announcement_id)
        if existing is None:
            raise NotFound("Announcement not found")
        ensure_allowed(
            actor, Resource.announcement, Operation.delete, owner_id=existing.author_id
        )
        await repo.deactivate_announcement(announcement_id)

    await recorder.record(actor, AuditDraft(AuditAction.DELETE, ENTITY, str(announcement_id)))
    return SuccessResponse()
