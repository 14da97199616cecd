"""
Chat system models.

This module defines the data models for realtime conversations:
- One-on-one and group conversations
- Participant membership with an active/left state
- Messages with an edit / delete lifecycle
- Reactions, read receipts and per-user hides
- Presence (online flag plus last-seen timestamp per user)

Models:
    Conversation: Container for messages, with a denormalized last-message pointer
    Participant: (conversation, user) membership with role and read pointer
    Message: Individual message within a conversation
    MessageReaction: One emoji from one user on one message
    MessageReadReceipt: When a user read a message
    MessageHide: A message a user deleted for themselves only
    UserPresence: Single mutable presence row per user

Design Decisions:
    - One participant row per (conversation, user); leaving sets left_at and
      rejoining clears it, so membership history is not retained
    - A one-on-one conversation becomes a group once a third user is added;
      it never converts back
    - Messages are never hard-deleted; delete-for-everyone redacts content
      in place and delete-for-self is a MessageHide row
    - Reactions and read receipts are aggregated at read time, nothing is
      stored pre-aggregated on Message
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import BaseModel

from chat.constants import MESSAGE_CONFIG


class ParticipantRole(models.TextChoices):
    """
    Role within a conversation.

    ADMIN: Can add and remove other participants in a group
    MEMBER: Can send messages, react, leave
    """

    ADMIN = "admin", "Admin"
    MEMBER = "member", "Member"


class MessageType(models.TextChoices):
    """Kind of message content."""

    TEXT = "text", "Text"
    SYSTEM = "system", "System"
    STORY_REPLY = "story_reply", "Story Reply"
    IMAGE = "image", "Image"
    VIDEO = "video", "Video"
    AUDIO = "audio", "Audio"
    FILE = "file", "File"


class MessageStatus(models.TextChoices):
    """Delivery status shown to the sender."""

    SENT = "sent", "Sent"
    SEEN = "seen", "Seen"


class Conversation(BaseModel):
    """
    Container for messages between participants.

    Fields:
        is_group: True for group conversations (never flips back to False)
        title: Optional group title
        created_by: User who created the conversation
        last_message: Pointer to the newest message (denormalized)
        last_message_content: Preview of the newest message (denormalized)
        last_message_at: Timestamp of the newest message (denormalized)

    The last_message_* fields are rewritten in the same transaction that
    inserts a message, so list views never need to scan messages.
    """

    is_group = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this is a group conversation",
    )

    title = models.CharField(
        max_length=100,
        blank=True,
        help_text="Group title (empty for one-on-one conversations)",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_conversations",
        help_text="User who created this conversation",
    )

    last_message = models.ForeignKey(
        "Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Newest message in this conversation",
    )

    last_message_content = models.CharField(
        max_length=MESSAGE_CONFIG.PREVIEW_LENGTH,
        blank=True,
        help_text="Preview of the newest message",
    )

    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="When the newest message was sent",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-last_message_at", "-created_at"]

    def __str__(self) -> str:
        kind = "group" if self.is_group else "direct"
        return f"Conversation {self.pk} ({kind})"

    def get_active_participants(self):
        """Return queryset of participants who have not left."""
        return self.participants.filter(left_at__isnull=True)


class Participant(BaseModel):
    """
    Tracks user participation in a conversation.

    Membership Lifecycle:
        1. User joins: row created with left_at=NULL
        2. User leaves or is removed: left_at set
        3. User rejoins: left_at cleared, joined_at refreshed (same row)

    Fields:
        conversation: Conversation this participation belongs to
        user: Participating user
        role: admin or member
        joined_at: When the user (re)joined
        left_at: When the user left (NULL while active)
        last_read_at: When the user last read the conversation
        last_read_message: Newest message the user has read

    Constraints:
        - UniqueConstraint(conversation, user): one row per pair
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="participants",
        help_text="Conversation this participation belongs to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_participations",
        help_text="User participating in the conversation",
    )

    role = models.CharField(
        max_length=10,
        choices=ParticipantRole.choices,
        default=ParticipantRole.MEMBER,
        help_text="Role in the conversation",
    )

    joined_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the user joined (refreshed on rejoin)",
    )

    left_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="When the user left (null if still active)",
    )

    last_read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last time the user read this conversation",
    )

    last_read_message = models.ForeignKey(
        "Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Newest message the user has read",
    )

    class Meta:
        db_table = "chat_participant"
        ordering = ["joined_at"]
        indexes = [
            models.Index(
                fields=["conversation", "left_at"],
                name="chat_part_conv_active_idx",
            ),
            models.Index(
                fields=["user", "left_at"],
                name="chat_part_user_active_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_conversation_participant",
            ),
        ]

    def __str__(self) -> str:
        status = "active" if self.is_active else "left"
        return f"Participant: {self.user_id} in {self.conversation_id} ({self.role}) [{status}]"

    @property
    def is_active(self) -> bool:
        return self.left_at is None

    @property
    def is_admin(self) -> bool:
        return self.role == ParticipantRole.ADMIN


class Message(BaseModel):
    """
    Individual message within a conversation.

    Lifecycle:
        active -> edited (text only, sender only, within the edit window)
        active/edited -> hidden for one user (MessageHide, any time)
        active/edited -> deleted for all (sender only, within the delete
        window); terminal, content replaced by a placeholder

    Fields:
        conversation: Owning conversation
        sender: Author
        message_type: text, system, story_reply or a media kind
        content: Body text (may be empty for media messages)
        media_urls: Object storage references for attached media
        file_name / file_size / mime_type / duration: Media metadata
        reply_to: Message this one replies to (same conversation)
        edited_at: Last edit time (NULL if never edited)
        is_deleted / deleted_for_all / deleted_at: Deletion flags
        status: sent or seen
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
        help_text="User who sent this message",
    )

    message_type = models.CharField(
        max_length=20,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Kind of message",
    )

    content = models.TextField(
        blank=True,
        default="",
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        help_text="Message body",
    )

    media_urls = models.JSONField(
        default=list,
        blank=True,
        help_text="URLs of attached media in object storage",
    )
    file_name = models.CharField(max_length=255, blank=True)
    file_size = models.PositiveBigIntegerField(null=True, blank=True)
    mime_type = models.CharField(max_length=100, blank=True)
    duration = models.FloatField(
        null=True,
        blank=True,
        help_text="Audio/video duration in seconds",
    )

    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replies",
        help_text="Message this one replies to",
    )

    edited_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the message was last edited",
    )

    is_deleted = models.BooleanField(
        default=False,
        help_text="Whether the message has been deleted",
    )
    deleted_for_all = models.BooleanField(
        default=False,
        help_text="Whether the deletion applies to every participant",
    )
    deleted_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(
        max_length=10,
        choices=MessageStatus.choices,
        default=MessageStatus.SENT,
        help_text="Delivery status",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            # Cursor pagination walks a conversation by descending id
            models.Index(
                fields=["conversation", "-id"],
                name="chat_msg_conv_id_idx",
            ),
            models.Index(
                fields=["sender", "created_at"],
                name="chat_msg_sender_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Message {self.pk} in {self.conversation_id} by {self.sender_id}"

    @property
    def is_text(self) -> bool:
        return self.message_type == MessageType.TEXT

    @property
    def display_content(self) -> str:
        """Content as readers see it; redacted once deleted for everyone."""
        if self.deleted_for_all:
            return MESSAGE_CONFIG.DELETED_PLACEHOLDER
        return self.content

    @property
    def preview(self) -> str:
        """Short preview for the conversation list."""
        if self.content:
            return self.content[: MESSAGE_CONFIG.PREVIEW_LENGTH]
        return f"[{self.message_type}]"


class MessageReaction(BaseModel):
    """
    One emoji reaction from one user on one message.

    Constraints:
        - UniqueConstraint(message, user, emoji): a user holds at most one
          reaction per emoji per message; a duplicate insert is a Conflict
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="reactions",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_reactions",
    )
    emoji = models.CharField(
        max_length=10,
        help_text="Emoji from the reaction allow-list",
    )

    class Meta:
        db_table = "chat_message_reaction"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user", "emoji"],
                name="unique_message_user_emoji",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} reacted {self.emoji} to {self.message_id}"


class MessageReadReceipt(BaseModel):
    """
    Record that a user has read a message.

    read_at is upserted and only ever moves forward.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="read_receipts",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="read_receipts",
    )
    read_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "chat_message_read_receipt"
        ordering = ["read_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_message_read_receipt",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} read {self.message_id} at {self.read_at}"


class MessageHide(BaseModel):
    """A message one user deleted for themselves only."""

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="hides",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="hidden_messages",
    )

    class Meta:
        db_table = "chat_message_hide"
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_message_hide",
            ),
        ]


class UserPresence(BaseModel):
    """
    Online/offline state of a user.

    One row per user, upserted on every heartbeat or visibility change and
    never deleted. There is no server-side expiry: a user whose client
    vanished without an offline signal keeps is_online=True.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="presence",
    )
    is_online = models.BooleanField(default=False, db_index=True)
    last_seen_at = models.DateTimeField(null=True, blank=True)
    session_id = models.CharField(
        max_length=255,
        blank=True,
        help_text="Transport session identifier of the client",
    )

    class Meta:
        db_table = "chat_user_presence"
        verbose_name_plural = "user presence"

    def __str__(self) -> str:
        state = "online" if self.is_online else "offline"
        return f"Presence: {self.user_id} {state}"
