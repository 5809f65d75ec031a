"""Error taxonomy surfaced at the HTTP boundary.

Every error carries a stable ``code`` and a message that is safe to show to
callers. Internal detail (SQL text, driver messages) stays in the server log.
"""


class TrackerError(Exception):
    """Base class for errors with a stable code and HTTP status."""

    code: str = "internal_error"
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredential(TrackerError):
    """Missing, malformed, badly signed or expired credential."""

    code = "invalid_credential"
    status_code = 401
    default_message = "Invalid or missing credentials"


class MalformedClaims(TrackerError):
    """Credential verified but its claims are structurally invalid."""

    code = "malformed_claims"
    status_code = 401
    default_message = "Credential claims are malformed"


class Forbidden(TrackerError):
    """Authenticated, but role or ownership does not permit the operation."""

    code = "forbidden"
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(TrackerError):
    """Resource is absent or belongs to another organization."""

    code = "not_found"
    status_code = 404
    default_message = "Not found"


class Conflict(TrackerError):
    """Write rejected by a uniqueness constraint."""

    code = "conflict"
    status_code = 409
    default_message = "Conflicts with an existing record"


class Unavailable(TrackerError):
    """Pool exhausted or database unreachable. Safe to retry."""

    code = "unavailable"
    status_code = 503
    default_message = "Service temporarily unavailable"


class AuditWriteFailed(TrackerError):
    """Audit row could not be written. Logged and suppressed by the recorder."""

    code = "audit_write_failed"
    status_code = 500
    default_message = "Audit write failed"
