"""Query-string filters shared by log listing and reports."""

import uuid
from datetime import datetime
from typing import Annotated, Any

from fastapi import Depends, Query

from behaviorlog.db.repositories import LogFilters


def log_filters(
    client_id: uuid.UUID | None = Query(None),
    behavior_id: uuid.UUID | None = Query(None),
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    incident: bool | None = Query(None),
    limit: int | None = Query(None, ge=1, le=1000),
) -> LogFilters:
    return LogFilters(
        client_id=client_id,
        behavior_id=behavior_id,
        date_from=date_from,
        date_to=date_to,
        incident=incident,
        limit=limit,
    )


def describe_filters(filters: LogFilters) -> dict[str, Any]:
    """Filters as audit metadata, omitting unset values."""
    described = {
        "client_id": filters.client_id,
        "behavior_id": filters.behavior_id,
        "date_from": filters.date_from,
        "date_to": filters.date_to,
        "incident": filters.incident,
    }
    return {
        key: value if isinstance(value, bool) else str(value)
        for key, value in described.items()
        if value is not None
    }


LogFiltersDep = Annotated[LogFilters, Depends(log_filters)]
