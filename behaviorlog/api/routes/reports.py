"""Report endpoints.

Rendering (CSV, PDF, charts) happens downstream. These endpoints only supply
the data and record that it was read or exported.
"""

from fastapi import APIRouter

from behaviorlog.api.auth import ActorDep, DatabaseDep, RecorderDep
from behaviorlog.api.filters import LogFiltersDep, describe_filters
from behaviorlog.auth.guard import Operation, Resource, ensure_allowed
from behaviorlog.db.audit import AuditAction, AuditDraft
from behaviorlog.db.sql_repositories import SqlLogEntryRepository
from behaviorlog.models.logs import LogEntryResponse
from behaviorlog.models.reports import ExportResponse, SummaryResponse

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/summary", response_model=SummaryResponse)
async def summary(
    filters: LogFiltersDep,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> SummaryResponse:
    """Counts by behavior and by day, with incident and average totals."""
    ensure_allowed(actor, Resource.report, Operation.read)

    async with database.tenant_session(actor, read_only=True) as tx:
        report = await SqlLogEntryRepository(tx).summary(filters)

    await recorder.record(
        actor,
        AuditDraft(
            AuditAction.READ,
            Resource.report.value,
            metadata={"type": "summary", "filters": describe_filters(filters)},
        ),
    )
    return SummaryResponse(
        behavior_counts=report.behavior_counts,
        daily_counts=report.daily_counts,
        total_entries=report.total_entries,
        total_incidents=report.total_incidents,
        average_intensity=report.average_intensity,
        average_duration=report.average_duration,
    )


@router.get("/export", response_model=ExportResponse)
async def export(
    filters: LogFiltersDep,
    actor: ActorDep,
    database: DatabaseDep,
    recorder: RecorderDep,
) -> ExportResponse:
    """Log entries for export (supervisors only)."""
    ensure_allowed(actor, Resource.report, Operation.export)

    async with database.tenant_session(actor, read_only=True) as tx:
        records = await SqlLogEntryRepository(tx).list_entries(filters)

    await recorder.record(
        actor,
        AuditDraft(
            AuditAction.EXPORT,
            Resource.log_entry.value,
            metadata={"record_count": len(records), "filters": describe_filters(filters)},
        ),
    )
    return ExportResponse(
        record_count=len(records),
        rows=[LogEntryResponse.model_validate(r) for r in records],
    )
