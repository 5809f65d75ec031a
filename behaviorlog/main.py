"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc

from behaviorlog.api.routes.announcements import router as announcements_router
from behaviorlog.api.routes.audit import router as audit_router
from behaviorlog.api.routes.auth import router as auth_router
from behaviorlog.api.routes.behaviors import router as behaviors_router
from behaviorlog.api.routes.clients import router as clients_router
from behaviorlog.api.routes.comments import router as comments_router
from behaviorlog.api.routes.health import router as health_router
from behaviorlog.api.routes.logs import router as logs_router
from behaviorlog.api.routes.metrics import router as metrics_router
from behaviorlog.api.routes.reports import router as reports_router
from behaviorlog.config import Settings, get_settings
from behaviorlog.db.audit import AuditRecorder
from behaviorlog.db.session import Database
from behaviorlog.errors import Conflict, InvalidCredential, MalformedClaims, TrackerError, Unavailable
from behaviorlog.utils.logging import configure_logging

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "1"


def _error_response(error: TrackerError) -> JSONResponse:
    headers: dict[str, str] = {}
    if isinstance(error, (InvalidCredential, MalformedClaims)):
        headers["WWW-Authenticate"] = "Bearer"
    elif isinstance(error, Unavailable):
        headers["Retry-After"] = RETRY_AFTER_SECONDS
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message, "code": error.code},
        headers=headers,
    )


async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    return _error_response(exc)


async def unavailable_db_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning(
        "Database unavailable",
        extra={"structured": {"event": "db_unavailable", "error": type(exc).__name__}},
    )
    return _error_response(Unavailable())


async def integrity_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.info(
        "Write rejected by constraint",
        extra={"structured": {"event": "db_conflict", "path": request.url.path}},
    )
    return _error_response(Conflict())


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # SQL text and driver messages stay in the server log.
    logger.exception(
        "Unhandled database error",
        extra={"structured": {"event": "db_error", "path": request.url.path}},
    )
    return _error_response(TrackerError())


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use; defaults to environment settings
        database: Pre-built database (tests inject one); otherwise one is
            created from settings at startup and disposed at shutdown
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        owned = app.state.database is None
        if owned:
            app.state.database = Database.from_settings(settings)
            app.state.recorder = AuditRecorder(app.state.database)
        logger.info("Application started", extra={"structured": {"event": "startup"}})
        try:
            yield
        finally:
            if owned:
                await app.state.database.dispose()
                app.state.database = None
                app.state.recorder = None

    app = FastAPI(title="Behavior Log API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.recorder = AuditRecorder(database) if database is not None else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ui_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TrackerError, tracker_error_handler)  # type: ignore[arg-type]
    for exc_type in (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError):
        app.add_exception_handler(exc_type, unavailable_db_handler)
    app.add_exception_handler(sa_exc.IntegrityError, integrity_error_handler)
    app.add_exception_handler(sa_exc.SQLAlchemyError, database_error_handler)

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(auth_router)
    app.include_router(clients_router)
    app.include_router(behaviors_router)
    app.include_router(logs_router)
    app.include_router(comments_router)
    app.include_router(announcements_router)
    app.include_router(audit_router)
    app.include_router(reports_router)

    return app


app = create_app()
