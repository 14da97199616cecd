"""
Tests for PresenceService.

Features tested:
- Explicit online/offline transitions (upsert, last_seen_at refresh)
- Heartbeat (forces online, broadcasts only on transition)
- Per-user websocket counting: offline only when the last one closes
- Presence queries with offline defaults for unknown users
- Broadcast audience: users sharing an active conversation
"""

from freezegun import freeze_time

from chat.constants import REALTIME_EVENTS
from chat.models import Participant, UserPresence
from chat.services import PresenceService
from chat.tests.factories import UserPresenceFactory


class TestSetPresence:
    def test_creates_record_on_first_call(self, alice):
        with freeze_time("2025-05-05 08:00:00"):
            presence = PresenceService.set_presence(alice, is_online=True).data

        assert presence.is_online is True
        assert presence.last_seen_at.isoformat().startswith("2025-05-05T08:00:00")
        assert UserPresence.objects.filter(user=alice).count() == 1

    def test_going_offline_refreshes_last_seen(self, alice):
        with freeze_time("2025-05-05 08:00:00"):
            PresenceService.set_presence(alice, is_online=True)
        with freeze_time("2025-05-05 09:30:00"):
            presence = PresenceService.set_presence(alice, is_online=False).data

        assert presence.is_online is False
        assert presence.last_seen_at.hour == 9
        assert UserPresence.objects.filter(user=alice).count() == 1

    def test_stores_session_id(self, alice):
        presence = PresenceService.set_presence(alice, session_id="specific.abc123").data

        assert presence.session_id == "specific.abc123"

    def test_broadcasts_to_users_sharing_a_conversation(
        self, direct_conversation, alice, bob, outsider, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            PresenceService.set_presence(alice, is_online=True)

        assert published.recipients(REALTIME_EVENTS.PRESENCE_CHANGED) == {bob.id}
        payload = published.payload(REALTIME_EVENTS.PRESENCE_CHANGED)
        assert payload["user_id"] == alice.id
        assert payload["is_online"] is True

    def test_no_broadcast_to_former_participants(
        self, direct_conversation, alice, bob, published, django_capture_on_commit_callbacks
    ):
        Participant.objects.filter(user=bob).update(left_at=direct_conversation.created_at)

        with django_capture_on_commit_callbacks(execute=True):
            PresenceService.set_presence(alice, is_online=True)

        assert published.calls == []


class TestHeartbeat:
    def test_marks_online(self, alice):
        UserPresenceFactory(user=alice, is_online=False)

        presence = PresenceService.heartbeat(alice).data

        assert presence.is_online is True

    def test_broadcasts_only_on_transition(
        self, direct_conversation, alice, bob, published, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            PresenceService.heartbeat(alice)
            PresenceService.heartbeat(alice)

        assert published.events_for(bob.id) == [REALTIME_EVENTS.PRESENCE_CHANGED]

    def test_refreshes_last_seen(self, alice):
        with freeze_time("2025-05-05 08:00:00"):
            PresenceService.heartbeat(alice)
        with freeze_time("2025-05-05 08:01:00"):
            presence = PresenceService.heartbeat(alice).data

        assert presence.last_seen_at.minute == 1


class TestConnectionTracking:
    def test_first_connection_marks_online(self, alice):
        presence = PresenceService.connection_opened(alice, "specific.tab1").data

        assert presence.is_online is True
        assert presence.session_id == "specific.tab1"

    def test_offline_only_after_last_connection_closes(self, alice):
        PresenceService.connection_opened(alice, "specific.tab1")
        PresenceService.connection_opened(alice, "specific.tab2")

        first = PresenceService.connection_closed(alice, "specific.tab1")
        assert first.data is None
        assert UserPresence.objects.get(user=alice).is_online is True

        last = PresenceService.connection_closed(alice, "specific.tab2")
        assert last.data.is_online is False

    def test_close_without_tracked_connection_goes_offline(self, alice):
        PresenceService.set_presence(alice, is_online=True)

        result = PresenceService.connection_closed(alice, "specific.gone")

        assert result.data.is_online is False

    def test_reconnect_after_offline_starts_a_fresh_count(self, alice):
        PresenceService.connection_opened(alice, "specific.tab1")
        PresenceService.connection_closed(alice, "specific.tab1")
        PresenceService.connection_opened(alice, "specific.tab2")

        assert PresenceService.connection_closed(alice, "specific.tab2").data.is_online is False


class TestGetPresence:
    def test_unknown_users_default_to_offline(self, alice, bob):
        PresenceService.set_presence(alice, is_online=True)

        presence = PresenceService.get_presence([alice.id, bob.id]).data

        assert presence[alice.id]["is_online"] is True
        assert presence[alice.id]["user"]["name"] == "Alice Adams"
        assert presence[bob.id] == {"is_online": False, "last_seen_at": None, "user": None}

    def test_every_requested_id_is_present(self, db):
        presence = PresenceService.get_presence([123456, 654321]).data

        assert set(presence) == {123456, 654321}

    def test_stale_online_record_is_still_online(self, alice):
        with freeze_time("2020-01-01 00:00:00"):
            PresenceService.set_presence(alice, is_online=True)

        assert PresenceService.get_presence([alice.id]).data[alice.id]["is_online"] is True
