"""Tests for the health check endpoint."""

from unittest.mock import patch

from django.db import DatabaseError


class TestHealthCheck:
    def test_healthy(self, client, db):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "channel_layer": "configured",
        }

    def test_database_down_is_503(self, client, db):
        with patch("core.views.connection") as connection:
            connection.cursor.side_effect = DatabaseError("down")
            response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"

    def test_missing_channel_layer_is_still_healthy(self, client, db):
        with patch("core.views.get_channel_layer", return_value=None):
            response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["channel_layer"] == "not_configured"
