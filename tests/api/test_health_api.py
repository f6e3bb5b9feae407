"""Tests for the public health and root endpoints."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient


def test_root(test_client: TestClient) -> None:
    response = test_client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "Server is running"


def test_health_healthy(test_client: TestClient) -> None:
    with patch(
        "app.core.database.DatabaseClient.health_check",
        new_callable=AsyncMock,
        return_value={"status": "healthy"},
    ):
        response = test_client.get("/health/")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["database"] == "healthy"


def test_health_degraded(test_client: TestClient) -> None:
    with patch(
        "app.core.database.DatabaseClient.health_check",
        new_callable=AsyncMock,
        return_value={"status": "unhealthy", "error": "connection refused"},
    ):
        response = test_client.get("/health/")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"


def test_correlation_id_is_echoed(test_client: TestClient) -> None:
    response = test_client.get("/", headers={"X-Correlation-ID": "abc-123"})

    assert response.headers["X-Correlation-ID"] == "abc-123"
