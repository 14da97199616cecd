"""
Tests for chat models.

Covers model-level behavior only (properties and database constraints);
lifecycle rules are tested through the services.
"""

import pytest
from django.db import IntegrityError
from django.utils import timezone

from chat.constants import MESSAGE_CONFIG
from chat.models import MessageType, ParticipantRole
from chat.tests.factories import (
    MessageFactory,
    MessageReactionFactory,
    ParticipantFactory,
    conversation_between,
)


class TestParticipantModel:
    def test_is_active_until_left(self, direct_conversation, alice):
        participant = direct_conversation.participants.get(user=alice)
        assert participant.is_active

        participant.left_at = timezone.now()
        assert not participant.is_active

    def test_one_row_per_conversation_and_user(self, direct_conversation, alice):
        with pytest.raises(IntegrityError):
            ParticipantFactory(conversation=direct_conversation, user=alice)

    def test_group_creator_is_admin(self, group_conversation, alice, bob):
        assert group_conversation.participants.get(user=alice).role == ParticipantRole.ADMIN
        assert group_conversation.participants.get(user=bob).is_admin is False

    def test_get_active_participants_excludes_left(self, alice, bob, carol):
        conversation = conversation_between(alice, bob, carol)
        conversation.participants.filter(user=carol).update(left_at=timezone.now())

        active = set(conversation.get_active_participants().values_list("user_id", flat=True))

        assert active == {alice.id, bob.id}


class TestMessageModel:
    def test_display_content_is_placeholder_once_deleted_for_all(self, direct_conversation, alice):
        message = MessageFactory(conversation=direct_conversation, sender=alice, content="secret")
        assert message.display_content == "secret"

        message.deleted_for_all = True
        assert message.display_content == MESSAGE_CONFIG.DELETED_PLACEHOLDER

    def test_preview_truncates_long_content(self, direct_conversation, alice):
        message = MessageFactory(
            conversation=direct_conversation, sender=alice, content="x" * 500
        )

        assert len(message.preview) == MESSAGE_CONFIG.PREVIEW_LENGTH

    def test_preview_of_media_message_names_the_type(self, direct_conversation, alice):
        message = MessageFactory(
            conversation=direct_conversation,
            sender=alice,
            content="",
            message_type=MessageType.IMAGE,
        )

        assert message.preview == "[image]"
        assert message.is_text is False


class TestMessageReactionModel:
    def test_same_emoji_twice_violates_constraint(self, direct_conversation, alice, bob):
        message = MessageFactory(conversation=direct_conversation, sender=alice)
        MessageReactionFactory(message=message, user=bob, emoji="👍")

        with pytest.raises(IntegrityError):
            MessageReactionFactory(message=message, user=bob, emoji="👍")

    def test_different_emojis_from_same_user_allowed(self, direct_conversation, alice, bob):
        message = MessageFactory(conversation=direct_conversation, sender=alice)
        MessageReactionFactory(message=message, user=bob, emoji="👍")
        MessageReactionFactory(message=message, user=bob, emoji="❤️")

        assert message.reactions.count() == 2
