"""Unit tests for the application shell: health, correlation IDs, error bodies."""

from unittest.mock import AsyncMock, patch

import pytest

from src.services.errors import InternalError, store_errors


class TestHealth:
    """Tests for GET /health."""

    def test_healthy_database(self, client):
        with patch("src.database.health_check", new_callable=AsyncMock, return_value=True):
            response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "healthy"
        assert "timestamp" in body

    def test_unavailable_database(self, client):
        with patch(
            "src.database.health_check",
            new_callable=AsyncMock,
            side_effect=RuntimeError("Database pool not initialized"),
        ):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "unavailable"


class TestCorrelationId:
    """Tests for CorrelationIdMiddleware."""

    def test_generates_header(self, client):
        with patch("src.database.health_check", new_callable=AsyncMock, return_value=True):
            response = client.get("/health")
        assert response.headers["X-Correlation-Id"]

    def test_echoes_inbound_header(self, client):
        with patch("src.database.health_check", new_callable=AsyncMock, return_value=True):
            response = client.get("/health", headers={"X-Correlation-Id": "corr-42"})
        assert response.headers["X-Correlation-Id"] == "corr-42"

    def test_error_body_carries_correlation_id(self, client):
        response = client.post(
            "/api/v1/users/logout", headers={"X-Correlation-Id": "corr-401"}
        )

        assert response.status_code == 401
        assert response.json() == {
            "status_code": 401,
            "error": "Unauthorized",
            "detail": "Unauthorized request",
            "correlation_id": "corr-401",
        }


class TestStoreErrors:
    """Tests for the store_errors context manager."""

    def test_driver_error_becomes_internal(self):
        with pytest.raises(InternalError) as exc_info:
            with store_errors("save the user"):
                raise ConnectionRefusedError("refused")

        assert exc_info.value.message == "Something went wrong while trying to save the user"
        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)

    def test_other_errors_pass_through(self):
        with pytest.raises(KeyError):
            with store_errors("save the user"):
                raise KeyError("not a store failure")
