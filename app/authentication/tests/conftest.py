"""
Test configuration and fixtures for authentication tests.

This module provides:
- User fixtures (regular, named, inactive, superuser)
- API client helpers for JWT-authenticated requests

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get('/api/v1/auth/me/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.models import User
from authentication.tests.factories import NamedUserFactory, UserFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic active user with auto-created (empty) profile."""
    return UserFactory(password="TestPass123!")


@pytest.fixture
def named_user(db):
    """Create a user whose profile has a display name and avatar."""
    return NamedUserFactory(
        profile__first_name="Ada",
        profile__last_name="Lovelace",
        profile__username="ada",
        profile__avatar_url="https://cdn.example.com/avatars/ada.png",
    )


@pytest.fixture
def deactivated_user(db):
    """Create a deactivated user (is_active=False)."""
    return UserFactory(is_active=False)


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="admin@example.com", password="AdminPass123!"
    )


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def authenticated_client(user):
    """API client carrying a real JWT access token for `user`."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client
