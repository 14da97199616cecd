"""
Root pytest configuration for the Django project.

Settings come from config.test_settings (see pyproject.toml), which pytest-django
loads before any conftest. This module provides project-wide fixtures;
app-specific fixtures are defined in each app's tests/conftest.py.
"""

import pytest


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def client_for():
    """
    Build an APIClient authenticated as the given user.

    Usage:
        def test_example(client_for, user):
            response = client_for(user).get("/api/v1/auth/me/")
    """

    from rest_framework.test import APIClient

    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client_for
