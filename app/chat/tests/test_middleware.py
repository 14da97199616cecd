"""
Tests for websocket JWT authentication.

Covers token extraction from the query string and the "jwt, <token>"
subprotocol pair, and user resolution from simplejwt access tokens.
"""

import pytest
from asgiref.sync import async_to_sync
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from authentication.tests.factories import UserFactory
from chat.middleware import (
    JWTAuthMiddleware,
    get_token_from_query,
    get_token_from_subprotocol,
    get_user_from_token,
)


class TestTokenExtraction:
    def test_reads_token_from_query_string(self):
        scope = {"query_string": b"token=abc.def.ghi&foo=bar"}

        assert get_token_from_query(scope) == "abc.def.ghi"

    def test_missing_query_token_is_none(self):
        assert get_token_from_query({"query_string": b"foo=bar"}) is None
        assert get_token_from_query({}) is None

    def test_reads_token_from_subprotocol_pair(self):
        assert get_token_from_subprotocol({"subprotocols": ["jwt", "abc.def.ghi"]}) == "abc.def.ghi"

    def test_subprotocol_without_jwt_prefix_is_ignored(self):
        assert get_token_from_subprotocol({"subprotocols": ["chat", "abc"]}) is None
        assert get_token_from_subprotocol({"subprotocols": ["jwt"]}) is None


@pytest.mark.django_db(transaction=True)
class TestGetUserFromToken:
    def test_valid_access_token_resolves_user(self):
        user = UserFactory()

        resolved = async_to_sync(get_user_from_token)(str(AccessToken.for_user(user)))

        assert resolved.id == user.id

    def test_garbage_token_is_anonymous(self):
        resolved = async_to_sync(get_user_from_token)("not-a-jwt")

        assert isinstance(resolved, AnonymousUser)

    def test_refresh_token_is_rejected(self):
        user = UserFactory()

        resolved = async_to_sync(get_user_from_token)(str(RefreshToken.for_user(user)))

        assert isinstance(resolved, AnonymousUser)

    def test_inactive_user_is_anonymous(self):
        user = UserFactory(is_active=False)

        resolved = async_to_sync(get_user_from_token)(str(AccessToken.for_user(user)))

        assert isinstance(resolved, AnonymousUser)

    def test_deleted_user_is_anonymous(self):
        user = UserFactory()
        token = str(AccessToken.for_user(user))
        user.delete()

        assert isinstance(async_to_sync(get_user_from_token)(token), AnonymousUser)


@pytest.mark.django_db(transaction=True)
class TestJWTAuthMiddleware:
    def _run(self, scope):
        captured = {}

        async def inner(scope, receive, send):
            captured["user"] = scope["user"]

        async_to_sync(JWTAuthMiddleware(inner))(scope, None, None)
        return captured["user"]

    def test_attaches_user_from_query_token(self):
        user = UserFactory()
        token = str(AccessToken.for_user(user))

        resolved = self._run({"type": "websocket", "query_string": f"token={token}".encode()})

        assert resolved.id == user.id

    def test_attaches_user_from_subprotocol(self):
        user = UserFactory()
        token = str(AccessToken.for_user(user))

        resolved = self._run({"type": "websocket", "subprotocols": ["jwt", token]})

        assert resolved.id == user.id

    def test_no_token_is_anonymous(self):
        resolved = self._run({"type": "websocket", "query_string": b""})

        assert isinstance(resolved, AnonymousUser)
