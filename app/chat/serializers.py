"""
Serializers for chat models.

Input serializers validate request shape only; lifecycle and membership
rules live in chat.services so that the same failure codes apply to HTTP
and websocket callers.

Output serializers define the delivery shape shared by HTTP responses and
realtime event payloads:
    MessageSerializer: message with reactions grouped by emoji and seen-by list
    ConversationListSerializer: conversation with preview and unread count
    ParticipantSerializer / ReactionSerializer / ReadReceiptSerializer
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSerializer
from chat.constants import MESSAGE_CONFIG, PAGINATION_CONFIG, REACTION_CONFIG
from chat.models import (
    Conversation,
    Message,
    MessageReaction,
    MessageReadReceipt,
    MessageType,
    Participant,
)


def group_reactions(reactions) -> dict[str, list[dict]]:
    """
    Group reactions by emoji into lists of reactor identities.

    Args:
        reactions: Iterable of MessageReaction (user and profile preloaded)

    Returns:
        {"👍": [{"id": 1, "name": "Ada", "image": None}, ...], ...}
    """
    grouped: dict[str, list[dict]] = {}
    for reaction in reactions:
        grouped.setdefault(reaction.emoji, []).append(
            UserSerializer(reaction.user).data
        )
    return grouped


# =============================================================================
# Message Serializers
# =============================================================================


class ReplyToSerializer(serializers.ModelSerializer):
    """Summary of the message being replied to."""

    content = serializers.CharField(source="display_content", read_only=True)
    sender = UserSerializer(read_only=True)

    class Meta:
        model = Message
        fields = ["id", "content", "message_type", "sender"]
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    """
    Delivery shape of a message.

    Content is replaced by the placeholder once deleted for everyone.
    Reactions and seen-by are computed from related rows at read time;
    prefetch "reactions__user__profile" and "read_receipts__user__profile"
    when serializing a page.
    """

    conversation_id = serializers.IntegerField(read_only=True)
    sender = UserSerializer(read_only=True)
    content = serializers.CharField(source="display_content", read_only=True)
    reply_to = ReplyToSerializer(read_only=True)
    reactions = serializers.SerializerMethodField()
    seen_by = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender",
            "content",
            "message_type",
            "media_urls",
            "file_name",
            "file_size",
            "mime_type",
            "duration",
            "reply_to",
            "edited_at",
            "is_deleted",
            "deleted_for_all",
            "status",
            "created_at",
            "reactions",
            "seen_by",
        ]
        read_only_fields = fields

    def get_reactions(self, obj: Message) -> dict[str, list[dict]]:
        return group_reactions(obj.reactions.all())

    def get_seen_by(self, obj: Message) -> list[dict]:
        return [
            {
                "user": UserSerializer(receipt.user).data,
                "read_at": serializers.DateTimeField().to_representation(
                    receipt.read_at
                ),
            }
            for receipt in obj.read_receipts.all()
        ]


class MessageCreateSerializer(serializers.Serializer):
    """
    Input for sending a message.

    Text messages need content; media messages may omit it.
    """

    content = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        trim_whitespace=False,
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
    )
    message_type = serializers.ChoiceField(
        choices=[c for c in MessageType.values if c != MessageType.SYSTEM],
        default=MessageType.TEXT,
    )
    media_urls = serializers.ListField(
        child=serializers.URLField(max_length=500),
        required=False,
        default=list,
    )
    file_name = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=255
    )
    file_size = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    mime_type = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=100
    )
    duration = serializers.FloatField(required=False, allow_null=True, min_value=0)
    reply_to_id = serializers.IntegerField(required=False, allow_null=True)


class MessageEditSerializer(serializers.Serializer):
    """Input for editing a message's content."""

    content = serializers.CharField(
        allow_blank=True, max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH
    )


class MessagePageSerializer(serializers.Serializer):
    """One page of a conversation's messages in chronological order."""

    messages = MessageSerializer(many=True)
    has_more = serializers.BooleanField()
    next_cursor = serializers.IntegerField(allow_null=True)


class MessageListQuerySerializer(serializers.Serializer):
    """Query parameters for message listing."""

    cursor = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(
        required=False,
        min_value=1,
        default=PAGINATION_CONFIG.DEFAULT_LIMIT,
    )


# =============================================================================
# Reaction / Read Receipt Serializers
# =============================================================================


class ReactionCreateSerializer(serializers.Serializer):
    """Input for reacting; the allow-list is enforced by ReactionService."""

    emoji = serializers.CharField(max_length=REACTION_CONFIG.MAX_EMOJI_LENGTH)


class ReactionSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    message_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = MessageReaction
        fields = ["id", "message_id", "user", "emoji", "created_at"]
        read_only_fields = fields


class ReadReceiptSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    message_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = MessageReadReceipt
        fields = ["message_id", "user", "read_at"]
        read_only_fields = fields


# =============================================================================
# Conversation / Participant Serializers
# =============================================================================


class ParticipantSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = Participant
        fields = ["user", "role", "joined_at", "left_at", "last_read_at"]
        read_only_fields = fields


class ConversationListSerializer(serializers.ModelSerializer):
    """
    Conversation with preview, active participants and unread count.

    Expects the "active_participants" prefetch and "unread_count"
    annotation that ConversationService.list_conversations attaches;
    falls back to queries when they are missing.
    """

    last_message_id = serializers.IntegerField(read_only=True, allow_null=True)
    participants = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = [
            "id",
            "is_group",
            "title",
            "last_message_id",
            "last_message_content",
            "last_message_at",
            "participants",
            "unread_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_participants(self, obj: Conversation) -> list[dict]:
        participants = getattr(obj, "active_participants", None)
        if participants is None:
            participants = obj.get_active_participants().select_related(
                "user__profile"
            )
        return ParticipantSerializer(participants, many=True).data

    def get_unread_count(self, obj: Conversation) -> int:
        return getattr(obj, "unread_count", 0) or 0


class ConversationCreateSerializer(serializers.Serializer):
    """
    Input for starting a conversation.

    One other user gives a one-on-one conversation (re-used if it exists);
    more than one gives a group.
    """

    participant_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        min_length=1,
    )
    title = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=100
    )


class ParticipantAddSerializer(serializers.Serializer):
    user_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        min_length=1,
    )


class TypingSerializer(serializers.Serializer):
    is_typing = serializers.BooleanField(default=True)


# =============================================================================
# Presence Serializers
# =============================================================================


class PresenceSetSerializer(serializers.Serializer):
    """Input for an explicit online/offline transition."""

    is_online = serializers.BooleanField(default=True)
    session_id = serializers.CharField(
        required=False, allow_blank=True, max_length=255
    )


class PresenceQuerySerializer(serializers.Serializer):
    """Comma-separated user IDs: ?user_ids=1,2,3"""

    user_ids = serializers.CharField()

    def validate_user_ids(self, value: str) -> list[int]:
        try:
            ids = [int(part) for part in value.split(",") if part.strip()]
        except ValueError:
            raise serializers.ValidationError("user_ids must be integers")
        if not ids:
            raise serializers.ValidationError("At least one user ID is required")
        return ids
