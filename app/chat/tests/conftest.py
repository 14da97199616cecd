"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures (alice, bob, carol, outsider)
- Conversation fixtures (one-on-one and group)
- A recorder for realtime events published after commit

Usage:
    def test_example(direct_conversation, alice, published, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            MessageService.send_message(direct_conversation.id, alice, content="hi")
        assert published.events_for(bob.id) == ["new-message"]
"""

from unittest.mock import patch

import pytest
from django.core.cache import cache

from authentication.tests.factories import UserFactory
from chat.realtime import RealtimePublisher
from chat.tests.factories import conversation_between


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    return UserFactory(profile__first_name="Alice", profile__last_name="Adams")


@pytest.fixture
def bob(db):
    return UserFactory(profile__first_name="Bob", profile__last_name="Brown")


@pytest.fixture
def carol(db):
    return UserFactory(profile__first_name="Carol", profile__last_name="Clark")


@pytest.fixture
def outsider(db):
    """A user who is not a participant in any test conversation."""
    return UserFactory()


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def direct_conversation(alice, bob):
    """One-on-one conversation between alice and bob."""
    return conversation_between(alice, bob)


@pytest.fixture
def group_conversation(alice, bob, carol):
    """Group with alice as admin and bob, carol as members."""
    return conversation_between(alice, bob, carol, title="Weekend plans")


# =============================================================================
# Realtime Fixtures
# =============================================================================


class PublishedEvents:
    """Events captured from RealtimePublisher.publish, in call order."""

    def __init__(self):
        self.calls = []

    def record(self, user_id, event, payload):
        self.calls.append((user_id, event, payload))
        return True

    def events_for(self, user_id):
        return [event for uid, event, _ in self.calls if uid == user_id]

    def recipients(self, event):
        return {uid for uid, name, _ in self.calls if name == event}

    def payload(self, event):
        return next(payload for _, name, payload in self.calls if name == event)


@pytest.fixture
def published():
    """
    Record every realtime publish instead of sending it.

    Fan-out is scheduled with transaction.on_commit; wrap the action in
    django_capture_on_commit_callbacks(execute=True) to run it.
    """
    recorder = PublishedEvents()
    with patch.object(RealtimePublisher, "publish", side_effect=recorder.record):
        yield recorder


@pytest.fixture(autouse=True)
def clear_connection_counts():
    """Open-connection counters live in the cache; start every test at zero."""
    cache.clear()
    yield
    cache.clear()
