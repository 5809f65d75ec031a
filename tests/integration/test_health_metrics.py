"""Integration tests for /health, /healthz and /metrics endpoints."""

from typing import Any

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from behaviorlog.db.session import Database


class TestHealthEndpoint:
    """Test /health and /healthz endpoints."""

    @pytest.mark.asyncio
    async def test_health_always_ok(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_healthz_returns_200_when_db_ok(self, client: AsyncClient) -> None:
        response = await client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["db"] == "ok"
        assert data["pool"]["in_use"] == 0

    @pytest.mark.asyncio
    async def test_healthz_returns_503_when_db_fails(
        self, app: FastAPI, client: AsyncClient, database: Database, monkeypatch: Any
    ) -> None:
        async def failing_ping() -> tuple[bool, str]:
            return (False, "error: OperationalError")

        monkeypatch.setattr(database, "ping", failing_ping)

        response = await client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "error: OperationalError"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    @pytest.mark.asyncio
    async def test_metrics_exposes_security_counters(
        self, client: AsyncClient, tenants: Any, auth_headers: Any
    ) -> None:
        await client.get("/clients")
        await client.delete(f"/logs/{tenants.client_x}", headers=auth_headers(tenants.staff_x))

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        text = response.text
        assert 'auth_failures_total{reason="invalid_credential"}' in text
        denial_lines = [line for line in text.splitlines() if line.startswith("authz_denials_total{")]
        assert any('resource="logs"' in line and 'operation="delete"' in line for line in denial_lines)
        assert "db_sessions_in_use" in text
