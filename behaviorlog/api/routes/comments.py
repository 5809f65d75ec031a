"""Comment endpoints.

Any member may comment on a log entry in their organization. Editing and
deleting a comment is limited to its author and supervisors.
"""

import uuid

from fastapi import APIRouter, status

from behaviorlog.api.auth import ActorDep, DatabaseDep, RecorderDep
from behaviorlog.auth.guard import Operation, Resource, ensure_allowed
from behaviorlog.db.audit import AuditAction, AuditDraft
from behaviorlog.db.sql_repositories import SqlCommentRepository, SqlLogEntryRepository
from behaviorlog.errors import NotFound
from behaviorlog.models.comments import CommentRequest, CommentResponse
from behaviorlog.models.common import SuccessResponse

router = APIRouter(prefix="/comments", tags=["comments"])

ENTITY = Resource.comment.value


@router.get("/log/{log_id}", response_model=list[CommentResponse])
async def list_comments(
    log_id: uuid.UUID,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> list[CommentResponse]:
    """Comments on a log entry, newest first."""
    ensure_allowed(actor, Resource.comment, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        if not await SqlLogEntryRepository(tx).exists(log_id):
            raise NotFound("Log entry not found")
        records = await SqlCommentRepository(tx).list_for_log(log_id)

    await recorder.record(actor, AuditDraft(AuditAction.READ, ENTITY, str(log_id)))
    return [CommentResponse.model_validate(r) for r in records]


@router.post(
    "/log/{log_id}", response_model=CommentResponse, status_code=status.HTTP_201_CREATED
)
async def create_comment(
    log_id: uuid.UUID,
    body: CommentRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> CommentResponse:
    ensure_allowed(actor, Resource.comment, Operation.create)

    async with database.tenant_session(actor) as tx:
        if not await SqlLogEntryRepository(tx).exists(log_id):
            raise NotFound("Log entry not found")
        record = await SqlCommentRepository(tx).create_comment(log_id, body.content)

    await recorder.record(
        actor,
        AuditDraft(AuditAction.CREATE, ENTITY, str(record.id), {"log_id": str(log_id)}),
    )
    return CommentResponse.model_validate(record)


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: uuid.UUID,
    body: CommentRequest,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> CommentResponse:
    """Edit a comment (author or supervisor)."""
    async with database.tenant_session(actor) as tx:
        repo = SqlCommentRepository(tx)
        existing = await repo.get_comment(comment_id)
        if existing is None:
            raise NotFound("Comment not found")
        ensure_allowed(actor, Resource.comment, Operation.update, owner_id=existing.author_id)
        record = await repo.update_comment(comment_id, body.content)
    if record is None:
        raise NotFound("Comment not found")

    await recorder.record(actor, AuditDraft(AuditAction.UPDATE, ENTITY, str(comment_id)))
    return CommentResponse.model_validate(record)


@router.delete("/{comment_id}", response_model=SuccessResponse)
async def delete_comment(
    comment_id: uuid.UUID,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> SuccessResponse:
    """Delete a comment (author or supervisor)."""
    async with database.tenant_session(actor) as tx:
        repo = SqlCommentRepository(tx)
        existing = await repo.get_comment(comment_id)
        if existing is None:
            raise NotFound("Comment not found")
        ensure_allowed(actor, Resource.comment, Operation.delete, owner_id=existing.author_id)
        await repo.delete_comment(comment_id)

    await recorder.record(actor, AuditDraft(AuditAction.DELETE, ENTITY, str(comment_id)))
    return SuccessResponse()
