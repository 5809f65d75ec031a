"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from behaviorlog.api.auth import DatabaseDep

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(database: DatabaseDep) -> dict[str, Any] | JSONResponse:
    """Health check endpoint.

    Checks database connectivity and reports pool usage.

    Returns:
        200 with component status if the database answers
        503 if it does not
    """
    db_ok, db_status = await database.ping()

    response_body = {
        "status": "ok" if db_ok else "degraded",
        "components": {"db": db_status},
        "pool": database.stats.as_dict(),
    }

    if not db_ok:
        return JSONResponse(content=response_body, status_code=503)

    return response_body
