"""
Tests for the message edit / delete lifecycle.

Covers:
- Edit window (15 minutes), text-only edits, sender-only edits
- Delete for self (any participant, any time) vs delete for everyone
  (sender only, 1 hour window, terminal)
- Realtime events for edits and deletions

Time-based tests use freezegun so windows are measured exactly.
"""

from datetime import timedelta

import pytest
from freezegun import freeze_time

from core.services import ErrorCode
from chat.constants import MESSAGE_CONFIG, REALTIME_EVENTS
from chat.models import MessageHide, MessageType
from chat.services import MessageService, ReactionService
from chat.tests.factories import MessageFactory


T0 = "2025-06-01 12:00:00"


@pytest.fixture
def message_at_t0(direct_conversation, alice):
    """A text message from alice sent at T0."""
    with freeze_time(T0):
        return MessageService.send_message(direct_conversation.id, alice, content="Hello").data


# =============================================================================
# Edit
# =============================================================================


class TestEditMessage:
    def test_sender_edits_within_window(self, message_at_t0, alice):
        with freeze_time(T0) as frozen:
            frozen.tick(timedelta(minutes=10))
            result = MessageService.edit_message(alice, message_at_t0.id, "Hello there")

        assert result.success is True
        assert result.data.content == "Hello there"
        assert result.data.edited_at is not None

    def test_edit_after_window_is_invalid_state(self, message_at_t0, alice):
        with freeze_time(T0) as frozen:
            frozen.tick(timedelta(minutes=20))
            result = MessageService.edit_message(alice, message_at_t0.id, "too late")

        assert result.error_code == ErrorCode.INVALID_STATE
        message_at_t0.refresh_from_db()
        assert message_at_t0.content == "Hello"

    def test_edit_exactly_at_window_boundary_succeeds(self, message_at_t0, alice):
        with freeze_time(T0) as frozen:
            frozen.tick(timedelta(seconds=MESSAGE_CONFIG.EDIT_TIME_LIMIT_SECONDS))
            result = MessageService.edit_message(alice, message_at_t0.id, "just in time")

        assert result.success is True

    def test_non_sender_is_forbidden(self, message_at_t0, bob):
        with freeze_time(T0):
            result = MessageService.edit_message(bob, message_at_t0.id, "hijack")

        assert result.error_code == ErrorCode.FORBIDDEN

    def test_outsider_is_forbidden(self, message_at_t0, outsider):
        with freeze_time(T0):
            result = MessageService.edit_message(outsider, message_at_t0.id, "hijack")

        assert result.error_code == ErrorCode.FORBIDDEN

    def test_non_text_message_is_invalid_state(self, direct_conversation, alice):
        with freeze_time(T0):
            image = MessageService.send_message(
                direct_conversation.id,
                alice,
                message_type=MessageType.IMAGE,
                media_urls=["https://cdn.example.com/a.png"],
            ).data
            result = MessageService.edit_message(alice, image.id, "caption")

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_blank_content_is_bad_request(self, message_at_t0, alice):
        with freeze_time(T0):
            result = MessageService.edit_message(alice, message_at_t0.id, "   ")

        assert result.error_code == ErrorCode.BAD_REQUEST

    def test_missing_message_is_not_found(self, alice):
        assert MessageService.edit_message(alice, 999999, "x").error_code == ErrorCode.NOT_FOUND

    def test_edit_after_delete_for_everyone_is_invalid_state(self, message_at_t0, alice):
        with freeze_time(T0):
            MessageService.delete_message(alice, message_at_t0.id, for_everyone=True)
            result = MessageService.edit_message(alice, message_at_t0.id, "revive")

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_editing_latest_message_updates_preview(self, message_at_t0, direct_conversation, alice):
        with freeze_time(T0):
            MessageService.edit_message(alice, message_at_t0.id, "Edited")

        direct_conversation.refresh_from_db()
        assert direct_conversation.last_message_content == "Edited"

    def test_edit_fans_out(
        self, message_at_t0, alice, bob, published, django_capture_on_commit_callbacks
    ):
        with freeze_time(T0), django_capture_on_commit_callbacks(execute=True):
            MessageService.edit_message(alice, message_at_t0.id, "Edited")

        assert published.recipients(REALTIME_EVENTS.MESSAGE_EDITED) == {bob.id}
        assert published.payload(REALTIME_EVENTS.MESSAGE_EDITED)["content"] == "Edited"


# =============================================================================
# Delete
# =============================================================================


class TestDeleteForSelf:
    def test_hides_for_requester_only(self, message_at_t0, bob):
        result = MessageService.delete_message(bob, message_at_t0.id)

        assert result.success is True
        assert MessageHide.objects.filter(message=message_at_t0, user=bob).exists()
        message_at_t0.refresh_from_db()
        assert message_at_t0.content == "Hello"
        assert message_at_t0.deleted_for_all is False

    def test_allowed_any_time(self, message_at_t0, bob):
        with freeze_time(T0) as frozen:
            frozen.tick(timedelta(days=30))
            result = MessageService.delete_message(bob, message_at_t0.id)

        assert result.success is True

    def test_repeated_hide_is_idempotent(self, message_at_t0, bob):
        MessageService.delete_message(bob, message_at_t0.id)
        MessageService.delete_message(bob, message_at_t0.id)

        assert MessageHide.objects.filter(message=message_at_t0, user=bob).count() == 1

    def test_outsider_is_forbidden(self, message_at_t0, outsider):
        assert MessageService.delete_message(outsider, message_at_t0.id).error_code == ErrorCode.FORBIDDEN


class TestDeleteForEveryone:
    def test_sender_redacts_within_window(self, direct_conversation, alice):
        with freeze_time(T0) as frozen:
            message = MessageService.send_message(
                direct_conversation.id,
                alice,
                content="oops",
                message_type=MessageType.TEXT,
            ).data
            frozen.tick(timedelta(minutes=30))
            result = MessageService.delete_message(alice, message.id, for_everyone=True)

        assert result.success is True
        message.refresh_from_db()
        assert message.is_deleted is True
        assert message.deleted_for_all is True
        assert message.content == MESSAGE_CONFIG.DELETED_PLACEHOLDER
        assert message.media_urls == []
        direct_conversation.refresh_from_db()
        assert direct_conversation.last_message_content == MESSAGE_CONFIG.DELETED_PLACEHOLDER

    def test_after_window_is_invalid_state(self, message_at_t0, alice):
        with freeze_time(T0) as frozen:
            frozen.tick(timedelta(hours=2))
            result = MessageService.delete_message(alice, message_at_t0.id, for_everyone=True)

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_non_sender_is_forbidden(self, message_at_t0, bob):
        with freeze_time(T0):
            result = MessageService.delete_message(bob, message_at_t0.id, for_everyone=True)

        assert result.error_code == ErrorCode.FORBIDDEN

    def test_second_delete_is_invalid_state(self, message_at_t0, alice):
        with freeze_time(T0):
            MessageService.delete_message(alice, message_at_t0.id, for_everyone=True)
            result = MessageService.delete_message(alice, message_at_t0.id, for_everyone=True)

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_clears_media_metadata(self, direct_conversation, alice):
        with freeze_time(T0):
            message = MessageFactory(
                conversation=direct_conversation,
                sender=alice,
                message_type=MessageType.FILE,
                content="",
                media_urls=["https://cdn.example.com/report.pdf"],
                file_name="report.pdf",
                file_size=2048,
                mime_type="application/pdf",
            )
            MessageService.delete_message(alice, message.id, for_everyone=True)

        message.refresh_from_db()
        assert message.file_name == ""
        assert message.file_size is None
        assert message.mime_type == ""

    def test_reacting_after_delete_is_invalid_state(self, message_at_t0, alice, bob):
        with freeze_time(T0):
            MessageService.delete_message(alice, message_at_t0.id, for_everyone=True)

        assert ReactionService.react(bob, message_at_t0.id, "👍").error_code == ErrorCode.INVALID_STATE

    def test_fans_out_placeholder(
        self, message_at_t0, alice, bob, published, django_capture_on_commit_callbacks
    ):
        with freeze_time(T0), django_capture_on_commit_callbacks(execute=True):
            MessageService.delete_message(alice, message_at_t0.id, for_everyone=True)

        assert published.recipients(REALTIME_EVENTS.MESSAGE_DELETED) == {bob.id}
        assert published.payload(REALTIME_EVENTS.MESSAGE_DELETED) == {
            "message_id": message_at_t0.id,
            "conversation_id": message_at_t0.conversation_id,
            "content": MESSAGE_CONFIG.DELETED_PLACEHOLDER,
            "deleted_for_all": True,
        }


class TestLifecycleTimeline:
    """One message walked through the windows: edit at +10m, edit at +20m, delete at +30m."""

    def test_edit_then_expired_edit_then_delete(self, message_at_t0, alice):
        with freeze_time(T0) as frozen:
            frozen.tick(timedelta(minutes=10))
            assert MessageService.edit_message(alice, message_at_t0.id, "v2").success is True

            frozen.tick(timedelta(minutes=10))
            expired = MessageService.edit_message(alice, message_at_t0.id, "v3")
            assert expired.error_code == ErrorCode.INVALID_STATE

            frozen.tick(timedelta(minutes=10))
            assert MessageService.delete_message(
                alice, message_at_t0.id, for_everyone=True
            ).success is True

        message_at_t0.refresh_from_db()
        assert message_at_t0.display_content == MESSAGE_CONFIG.DELETED_PLACEHOLDER
