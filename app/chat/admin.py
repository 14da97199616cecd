"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation management with participant inline
- Message moderation
- Presence inspection
"""

from django.contrib import admin

from chat.models import (
    Conversation,
    Message,
    MessageReaction,
    MessageReadReceipt,
    Participant,
    UserPresence,
)


class ParticipantInline(admin.TabularInline):
    """Inline display of participants in conversation admin."""

    model = Participant
    extra = 0
    readonly_fields = ["joined_at", "left_at", "last_read_at", "last_read_message"]
    raw_id_fields = ["user"]


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "is_group",
        "title",
        "last_message_content",
        "last_message_at",
        "created_at",
    ]
    list_filter = ["is_group", "created_at"]
    search_fields = ["title", "id"]
    readonly_fields = [
        "created_at",
        "updated_at",
        "last_message",
        "last_message_content",
        "last_message_at",
    ]
    raw_id_fields = ["created_by"]
    inlines = [ParticipantInline]
    ordering = ["-created_at"]


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    list_display = ["id", "conversation", "user", "role", "joined_at", "left_at"]
    list_filter = ["role", "joined_at"]
    search_fields = ["user__email", "conversation__title"]
    readonly_fields = ["created_at", "updated_at", "joined_at", "last_read_message"]
    raw_id_fields = ["conversation", "user"]
    ordering = ["-joined_at"]


class MessageReactionInline(admin.TabularInline):
    model = MessageReaction
    extra = 0
    raw_id_fields = ["user"]


class MessageReadReceiptInline(admin.TabularInline):
    model = MessageReadReceipt
    extra = 0
    readonly_fields = ["read_at"]
    raw_id_fields = ["user"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sender",
        "message_type",
        "content_preview",
        "status",
        "deleted_for_all",
        "created_at",
    ]
    list_filter = ["message_type", "status", "is_deleted", "deleted_for_all", "created_at"]
    search_fields = ["content", "sender__email"]
    readonly_fields = ["created_at", "updated_at", "edited_at", "deleted_at"]
    raw_id_fields = ["conversation", "sender", "reply_to"]
    inlines = [MessageReactionInline, MessageReadReceiptInline]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        content = obj.display_content
        if len(content) > max_length:
            return content[:max_length] + "..."
        return content


@admin.register(UserPresence)
class UserPresenceAdmin(admin.ModelAdmin):
    list_display = ["user", "is_online", "last_seen_at"]
    list_filter = ["is_online"]
    search_fields = ["user__email"]
    raw_id_fields = ["user"]
