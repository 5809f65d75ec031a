"""Prometheus metrics for authentication, authorization, audit and data sessions."""

from prometheus_client import Counter, Gauge

auth_failures_total = Counter(
    "auth_failures_total",
    "Total rejected credentials",
    ["reason"],
)

authz_denials_total = Counter(
    "authz_denials_total",
    "Total authorization denials",
    ["resource", "operation"],
)

audit_writes_total = Counter(
    "audit_writes_total",
    "Total audit rows written",
    ["action"],
)

audit_write_failures_total = Counter(
    "audit_write_failures_total",
    "Total audit rows dropped after a failed write",
    ["action", "entity_type"],
)

db_sessions_total = Counter(
    "db_sessions_total",
    "Total tenant data sessions by outcome",
    ["outcome"],
)

db_sessions_in_use = Gauge(
    "db_sessions_in_use",
    "Tenant data sessions currently holding a connection",
)


class PrometheusSecurityMetrics:
    """Prometheus-based security and audit metrics."""

    def inc_auth_failure(self, reason: str) -> None:
        """Increment rejected-credential counter."""
        auth_failures_total.labels(reason=reason).inc()

    def inc_denial(self, resource: str, operation: str) -> None:
        """Increment authorization denial counter."""
        authz_denials_total.labels(resource=resource, operation=operation).inc()

    def inc_audit_write(self, action: str) -> None:
        """Increment audit write counter."""
        audit_writes_total.labels(action=action).inc()

    def inc_audit_failure(self, action: str, entity_type: str) -> None:
        """Increment dropped-audit counter."""
        audit_write_failures_total.labels(action=action, entity_type=entity_type).inc()


class PrometheusSessionMetrics:
    """Prometheus-based data session metrics."""

    def session_opened(self) -> None:
        db_sessions_in_use.inc()

    def session_closed(self, outcome: str) -> None:
        db_sessions_in_use.dec()
        db_sessions_total.labels(outcome=outcome).inc()

    def session_unavailable(self) -> None:
        db_sessions_total.labels(outcome="unavailable").inc()
