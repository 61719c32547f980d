"""
Main Application Unit Tests

Tests for application startup and health endpoints with mocked infrastructure.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from notesync.main import app


def test_health_check():
    """
    Verify /health endpoint returns correct response structure.

    TestClient triggers the lifespan handler, so the DB check must be mocked.
    """
    with patch("notesync.main.wait_for_db", new_callable=AsyncMock) as mock_db:
        mock_db.return_value = True

        with TestClient(app) as client:
            response = client.get("/health")

            assert response.status_code == 200
            data = response.json()

            assert data["status"] == "ok"
            assert data["service"] == "notesync"
            assert "environment" in data


def test_startup_fails_without_database():
    """The service refuses to start when the database never answers."""
    with patch("notesync.main.wait_for_db", new_callable=AsyncMock) as mock_db:
        mock_db.return_value = False

        with pytest.raises(RuntimeError, match="Database connection failed"):
            with TestClient(app):
                pass
