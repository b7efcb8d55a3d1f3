"""Tests for health check endpoints."""

import pytest
from httpx import AsyncClient


class TestHealthEndpoint:
    async def test_health_returns_healthy(self, client: AsyncClient) -> None:
        """Liveness probe returns healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_no_catalog_check(self, client: AsyncClient) -> None:
        """Health endpoint does not include catalog status."""
        response = await client.get("/health")

        assert response.json().get("catalog") is None


class TestReadyEndpoint:
    async def test_ready_when_catalog_loads(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Readiness probe returns ready when the catalog is available."""
        monkeypatch.setattr("petshelf.api.health.catalog_available", lambda: True)

        response = await client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["catalog"] == "loaded"

    async def test_ready_returns_503_without_catalog(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Readiness probe returns 503 when the catalog cannot be loaded."""
        monkeypatch.setattr("petshelf.api.health.catalog_available", lambda: False)

        response = await client.get("/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not ready"
        assert data["catalog"] == "unavailable"
