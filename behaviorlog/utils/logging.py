"""Structured logging for authentication, authorization and audit events."""

import json
import logging
from typing import Any

from behaviorlog.auth.context import ActorContext

logger = logging.getLogger(__name__)


class StructuredFormatter(logging.Formatter):
    """Formatter that appends the ``structured`` extra as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        structured = getattr(record, "structured", None)
        if not structured:
            return base
        return f"{base} {json.dumps(structured, default=str, sort_keys=True)}"


def configure_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())


def _actor_fields(actor: ActorContext | None) -> dict[str, Any]:
    if actor is None:
        return {"org_id": None, "user_id": None, "role": None}
    return {
        "org_id": str(actor.org_id),
        "user_id": str(actor.user_id),
        "role": actor.role.value,
    }


class StructuredSecurityLogger:
    """Structured logger for security-relevant outcomes."""

    def log_auth_failure(self, reason: str) -> None:
        """Log a rejected credential. The token itself is never logged."""
        logger.info(
            f"Authentication failed: {reason}",
            extra={"structured": {"event": "auth_failure", "reason": reason}},
        )

    def log_denial(self, actor: ActorContext | None, resource: str, operation: str) -> None:
        """Log an authorization denial."""
        log_data = _actor_fields(actor)
        log_data.update({"event": "authz_denied", "resource": resource, "operation": operation})
        logger.warning(
            f"Authorization denied: {operation} on {resource}",
            extra={"structured": log_data},
        )

    def log_audit_failure(
        self,
        actor: ActorContext,
        action: str,
        entity_type: str,
        error: BaseException,
    ) -> None:
        """Log an audit row that could not be written."""
        log_data = _actor_fields(actor)
        log_data.update(
            {
                "event": "audit_write_failed",
                "action": action,
                "entity_type": entity_type,
                "error": type(error).__name__,
            }
        )
        logger.error(
            f"Audit write failed: {action} {entity_type}",
            extra={"structured": log_data},
        )

    def log_session_outcome(self, actor: ActorContext | None, outcome: str) -> None:
        """Log a data session that did not commit."""
        log_data = _actor_fields(actor)
        log_data.update({"event": "db_session", "outcome": outcome})
        logger.warning(
            f"Data session ended: {outcome}",
            extra={"structured": log_data},
        )
