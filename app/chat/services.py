"""
Chat system service layer.

This module provides the business logic for realtime conversations,
encapsulating all reads and writes of conversations, participants,
messages, reactions, read receipts and presence.

Services:
    ConversationService: Membership checks, conversation creation, listing, message pages
    ParticipantService: Adding (with group conversion and rejoin) and removing participants
    MessageService: Send, edit, delete (for self / for everyone), mark read
    ReactionService: React, unreact, grouped reactions
    TypingService: Typing indicators
    PresenceService: Online flag and last-seen timestamp per user

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with an ErrorCode
    - Unexpected failures raise (the view layer renders them as INTERNAL)
    - Every message-level operation checks active membership first and
      fails closed with FORBIDDEN
    - Realtime fan-out is dispatched after commit and never affects the result

Usage:
    from chat.services import MessageService

    result = MessageService.send_message(
        conversation_id=conversation.id,
        sender=user,
        content="Hello everyone!",
    )
    if result:
        message = result.data
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import IntegrityError, transaction
from django.db.models import Count, IntegerField, OuterRef, Prefetch, Q, Subquery
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.services import BaseService, ErrorCode, ServiceResult

from chat.constants import (
    MESSAGE_CONFIG,
    PAGINATION_CONFIG,
    PRESENCE_CONFIG,
    REACTION_CONFIG,
    REALTIME_EVENTS,
)
from chat.models import (
    Conversation,
    Message,
    MessageHide,
    MessageReaction,
    MessageReadReceipt,
    MessageStatus,
    MessageType,
    Participant,
    ParticipantRole,
    UserPresence,
)
from chat.realtime import (
    dispatch_conversation_event,
    dispatch_presence_event,
    dispatch_to_users,
)
from chat.serializers import MessageSerializer, group_reactions
from authentication.serializers import UserSerializer

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)


NOT_PARTICIPANT_MESSAGE = "You are not a participant in this conversation"


def _not_participant() -> ServiceResult:
    return ServiceResult.failure(NOT_PARTICIPANT_MESSAGE, error_code=ErrorCode.FORBIDDEN)


def _message_not_found() -> ServiceResult:
    return ServiceResult.failure("Message not found", error_code=ErrorCode.NOT_FOUND)


def _seconds_since(moment) -> float:
    return (timezone.now() - moment).total_seconds()


def _message_queryset():
    """Messages with everything MessageSerializer touches preloaded."""
    return Message.objects.select_related(
        "sender__profile",
        "reply_to__sender__profile",
    ).prefetch_related(
        Prefetch(
            "reactions",
            queryset=MessageReaction.objects.select_related("user__profile"),
        ),
        Prefetch(
            "read_receipts",
            queryset=MessageReadReceipt.objects.select_related("user__profile"),
        ),
    )


@dataclass
class MessagePage:
    """One page of messages in chronological order."""

    messages: list[Message] = field(default_factory=list)
    has_more: bool = False
    next_cursor: int | None = None


class ConversationService(BaseService):
    """
    Conversation store accessor.

    Methods:
        get_active_participant: Active membership row or None (fail closed)
        is_active_participant: Boolean membership check
        create_conversation: Start a one-on-one or group conversation
        get_conversation: Conversation visible to an active participant
        list_conversations: User's active conversations with unread counts
        list_messages: Cursor-paginated, visibility-filtered message page
    """

    @classmethod
    def get_active_participant(cls, conversation_id, user_id) -> Participant | None:
        """
        Return the active participant row for (conversation, user).

        Returns None when the row is missing or the user has left; callers
        treat None as "not allowed".
        """
        if conversation_id is None or user_id is None:
            return None
        return Participant.objects.filter(
            conversation_id=conversation_id,
            user_id=user_id,
            left_at__isnull=True,
        ).first()

    @classmethod
    def is_active_participant(cls, conversation_id, user_id) -> bool:
        return (
            Participant.objects.filter(
                conversation_id=conversation_id,
                user_id=user_id,
                left_at__isnull=True,
            ).exists()
        )

    @classmethod
    def create_conversation(
        cls,
        creator: User,
        participant_ids: list[int],
        title: str = "",
    ) -> ServiceResult[tuple[Conversation, bool]]:
        """
        Start a conversation with the given users.

        One other user: returns the existing one-on-one conversation between
        the pair if there is one (rejoining the creator if they had left),
        otherwise creates it. Several users: creates a group with the creator
        as admin.

        Returns:
            ServiceResult with (conversation, created)

        Error codes:
            BAD_REQUEST: No other users given
            NOT_FOUND: One or more users do not exist
        """
        User = get_user_model()

        other_ids = list(dict.fromkeys(pid for pid in participant_ids if pid != creator.id))
        if not other_ids:
            return ServiceResult.failure(
                "At least one other participant is required",
                error_code=ErrorCode.BAD_REQUEST,
            )

        found = set(
            User.objects.active().filter(id__in=other_ids).values_list(
                "id", flat=True
            )
        )
        missing = [uid for uid in other_ids if uid not in found]
        if missing:
            return ServiceResult.failure(
                "One or more users were not found",
                error_code=ErrorCode.NOT_FOUND,
                errors={"participant_ids": [str(uid) for uid in missing]},
            )

        if len(other_ids) == 1:
            existing = (
                Conversation.objects.filter(is_group=False, participants__user=creator)
                .filter(participants__user_id=other_ids[0])
                .first()
            )
            if existing:
                Participant.objects.filter(
                    conversation=existing,
                    user=creator,
                    left_at__isnull=False,
                ).update(left_at=None, joined_at=timezone.now())
                return ServiceResult.success((existing, False))

        is_group = len(other_ids) > 1
        with cls.atomic():
            conversation = Conversation.objects.create(
                is_group=is_group,
                title=title if is_group else "",
                created_by=creator,
            )
            Participant.objects.create(
                conversation=conversation,
                user=creator,
                role=ParticipantRole.ADMIN if is_group else ParticipantRole.MEMBER,
            )
            Participant.objects.bulk_create(
                [
                    Participant(
                        conversation=conversation,
                        user_id=uid,
                        role=ParticipantRole.MEMBER,
                    )
                    for uid in other_ids
                ]
            )

        cls.get_logger().info(
            f"User {creator.id} created conversation {conversation.id} "
            f"({'group' if is_group else 'direct'}, {len(other_ids) + 1} participants)"
        )

        return ServiceResult.success((conversation, True))

    @classmethod
    def get_conversation(cls, conversation_id, user: User) -> ServiceResult[Conversation]:
        """Return the conversation if the user is an active participant."""
        if not cls.is_active_participant(conversation_id, user.id):
            return _not_participant()

        conversation = Conversation.objects.prefetch_related(
            Prefetch(
                "participants",
                queryset=Participant.objects.filter(left_at__isnull=True).select_related(
                    "user__profile"
                ),
                to_attr="active_participants",
            )
        ).get(id=conversation_id)
        return ServiceResult.success(conversation)

    @classmethod
    def list_conversations(cls, user: User) -> ServiceResult[list[Conversation]]:
        """
        List the user's active conversations, newest activity first.

        Each conversation carries:
            active_participants: prefetched active Participant rows
            unread_count: messages from others newer than the user's read
                pointer (or join time when nothing was read yet)
        """
        unread_messages = (
            Message.objects.filter(
                conversation_id=OuterRef("conversation_id"),
                created_at__gt=OuterRef("read_marker"),
                is_deleted=False,
            )
            .exclude(sender=user)
            .exclude(hides__user=user)
            .order_by()
            .values("conversation_id")
            .annotate(total=Count("id"))
            .values("total")
        )

        participations = (
            Participant.objects.filter(user=user, left_at__isnull=True)
            .annotate(read_marker=Coalesce("last_read_at", "joined_at"))
            .annotate(
                unread_count=Coalesce(
                    Subquery(unread_messages, output_field=IntegerField()), 0
                )
            )
            .values("conversation_id", "unread_count")
        )
        unread_by_conversation = {
            row["conversation_id"]: row["unread_count"] for row in participations
        }

        conversations = list(
            Conversation.objects.filter(id__in=list(unread_by_conversation))
            .prefetch_related(
                Prefetch(
                    "participants",
                    queryset=Participant.objects.filter(
                        left_at__isnull=True
                    ).select_related("user__profile"),
                    to_attr="active_participants",
                )
            )
            .order_by("-last_message_at", "-created_at")
        )
        for conversation in conversations:
            conversation.unread_count = unread_by_conversation.get(conversation.id, 0)

        return ServiceResult.success(conversations)

    @classmethod
    def list_messages(
        cls,
        conversation_id,
        user: User,
        cursor: int | None = None,
        limit: int | None = None,
    ) -> ServiceResult[MessagePage]:
        """
        Return one page of messages strictly older than the cursor.

        Rows are fetched newest-first with one extra probe row, then reversed
        to chronological order. next_cursor is the oldest returned ID when
        more rows exist.

        Visibility:
            - deleted-for-everyone rows are dropped for every participant
            - rows the requester hid for themselves are dropped for them only

        Loading the newest page (no cursor) advances the requester's read
        pointer to the newest message returned.

        Error codes:
            FORBIDDEN: Requester is not an active participant
        """
        participant = cls.get_active_participant(conversation_id, user.id)
        if not participant:
            return _not_participant()

        limit = max(1, min(limit or PAGINATION_CONFIG.DEFAULT_LIMIT, PAGINATION_CONFIG.MAX_LIMIT))

        queryset = (
            _message_queryset()
            .filter(conversation_id=conversation_id)
            .filter(is_deleted=False)
            .exclude(hides__user=user)
        )
        if cursor is not None:
            queryset = queryset.filter(id__lt=cursor)

        rows = list(queryset.order_by("-id")[: limit + 1])
        has_more = len(rows) > limit
        rows = rows[:limit]
        next_cursor = rows[-1].id if has_more and rows else None
        rows.reverse()

        if cursor is None and rows:
            newest = rows[-1]
            now = timezone.now()
            Participant.objects.filter(pk=participant.pk).update(
                last_read_at=now,
                updated_at=now,
            )
            Participant.objects.filter(pk=participant.pk).filter(
                Q(last_read_message__isnull=True) | Q(last_read_message_id__lt=newest.id)
            ).update(last_read_message=newest)

        return ServiceResult.success(
            MessagePage(messages=rows, has_more=has_more, next_cursor=next_cursor)
        )


class ParticipantService(BaseService):
    """
    Service for participant management.

    Methods:
        add_participants: Add or rejoin users; converts one-on-one to group
        remove_participant: Leave, or remove someone else as admin
    """

    @classmethod
    def add_participants(
        cls,
        conversation_id,
        actor: User,
        user_ids: list[int],
    ) -> ServiceResult[list[Participant]]:
        """
        Add users to a conversation.

        Rules:
            - Actor must be an active participant
            - In a group only admins may add
            - Users who left are rejoined (left_at cleared, joined_at refreshed)
            - Already-active users are skipped
            - Adding anyone to a one-on-one conversation turns it into a group
            - A system message names the added users

        Returns:
            ServiceResult with the Participant rows that were added or rejoined

        Error codes:
            FORBIDDEN: Actor not a participant, or not an admin of the group
            NOT_FOUND: One or more users do not exist
        """
        User = get_user_model()

        actor_participant = ConversationService.get_active_participant(
            conversation_id, actor.id
        )
        if not actor_participant:
            return _not_participant()

        conversation = actor_participant.conversation
        if conversation.is_group and not actor_participant.is_admin:
            return ServiceResult.failure(
                "Only admins can add participants to group chats",
                error_code=ErrorCode.FORBIDDEN,
            )

        user_ids = list(dict.fromkeys(user_ids))
        users = {u.id: u for u in User.objects.active().filter(id__in=user_ids)}
        missing = [uid for uid in user_ids if uid not in users]
        if missing:
            return ServiceResult.failure(
                "One or more users were not found",
                error_code=ErrorCode.NOT_FOUND,
                errors={"user_ids": [str(uid) for uid in missing]},
            )

        added: list[Participant] = []
        now = timezone.now()

        with cls.atomic():
            existing = {
                p.user_id: p
                for p in Participant.objects.select_for_update().filter(
                    conversation=conversation, user_id__in=user_ids
                )
            }
            for uid in user_ids:
                participant = existing.get(uid)
                if participant is None:
                    added.append(
                        Participant.objects.create(
                            conversation=conversation,
                            user=users[uid],
                            role=ParticipantRole.MEMBER,
                            joined_at=now,
                        )
                    )
                elif participant.left_at is not None:
                    participant.left_at = None
                    participant.joined_at = now
                    participant.save(update_fields=["left_at", "joined_at", "updated_at"])
                    added.append(participant)

            if added and not conversation.is_group:
                conversation.is_group = True
                conversation.save(update_fields=["is_group", "updated_at"])

            if added:
                names = ", ".join(users[p.user_id].get_full_name() for p in added)
                MessageService.create_system_message(
                    conversation, actor, f"added {names} to the group"
                )

        if added:
            cls.get_logger().info(
                f"User {actor.id} added {len(added)} participants "
                f"to conversation {conversation.id}"
            )
            dispatch_conversation_event(
                conversation.id,
                actor.id,
                REALTIME_EVENTS.PARTICIPANTS_CHANGED,
                {
                    "conversation_id": conversation.id,
                    "added": [p.user_id for p in added],
                    "is_group": conversation.is_group,
                },
            )

        return ServiceResult.success(added)

    @classmethod
    def remove_participant(
        cls,
        conversation_id,
        actor: User,
        target_user_id: int,
    ) -> ServiceResult[None]:
        """
        Remove a participant (or leave, when target is the actor).

        Error codes:
            FORBIDDEN: Actor not a participant, or removing someone else without admin role
            NOT_FOUND: Target is not an active participant
        """
        actor_participant = ConversationService.get_active_participant(
            conversation_id, actor.id
        )
        if not actor_participant:
            return _not_participant()

        is_self_removal = target_user_id == actor.id
        if not is_self_removal and not actor_participant.is_admin:
            return ServiceResult.failure(
                "Only admins can remove other participants",
                error_code=ErrorCode.FORBIDDEN,
            )

        target = ConversationService.get_active_participant(conversation_id, target_user_id)
        if not target:
            return ServiceResult.failure(
                "User is not an active participant",
                error_code=ErrorCode.NOT_FOUND,
            )

        conversation = actor_participant.conversation
        with cls.atomic():
            target.left_at = timezone.now()
            target.save(update_fields=["left_at", "updated_at"])

            content = (
                "left the group"
                if is_self_removal
                else f"removed {target.user.get_full_name()} from the group"
            )
            MessageService.create_system_message(conversation, actor, content)

        cls.get_logger().info(
            f"User {target_user_id} left conversation {conversation.id} "
            f"({'self' if is_self_removal else f'removed by {actor.id}'})"
        )
        dispatch_conversation_event(
            conversation.id,
            actor.id,
            REALTIME_EVENTS.PARTICIPANTS_CHANGED,
            {"conversation_id": conversation.id, "removed": [target_user_id]},
        )

        return ServiceResult.success(None)


class MessageService(BaseService):
    """
    Message lifecycle manager.

    Methods:
        send_message: Create a message and move the conversation pointer
        edit_message: Replace content within the edit window
        delete_message: Hide for self, or redact for everyone within the delete window
        mark_read: Record a read receipt and advance the read pointer
        create_system_message: Record a membership event in the conversation
    """

    @classmethod
    def _advance_conversation_pointer(cls, conversation_id, message: Message) -> None:
        Conversation.objects.filter(pk=conversation_id).update(
            last_message=message,
            last_message_content=message.preview,
            last_message_at=message.created_at,
            updated_at=timezone.now(),
        )

    @classmethod
    def send_message(
        cls,
        conversation_id,
        sender: User,
        content: str = "",
        message_type: str = MessageType.TEXT,
        media_urls: list[str] | None = None,
        file_name: str = "",
        file_size: int | None = None,
        mime_type: str = "",
        duration: float | None = None,
        reply_to_id: int | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message to a conversation.

        The insert, the conversation's last-message pointer and the sender's
        own read pointer are written in one transaction.

        Returns:
            ServiceResult with new Message

        Error codes:
            FORBIDDEN: Sender is not an active participant
            BAD_REQUEST: Empty text message, unknown type, or reply target
                outside this conversation
        """
        participant = ConversationService.get_active_participant(conversation_id, sender.id)
        if not participant:
            return _not_participant()

        if message_type not in MessageType.values or message_type == MessageType.SYSTEM:
            return ServiceResult.failure(
                f"Unsupported message type: {message_type}",
                error_code=ErrorCode.BAD_REQUEST,
            )

        content = content or ""
        if message_type == MessageType.TEXT and not content.strip():
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code=ErrorCode.BAD_REQUEST,
            )

        reply_to = None
        if reply_to_id:
            reply_to = Message.objects.filter(
                id=reply_to_id, conversation_id=conversation_id
            ).first()
            if reply_to is None:
                return ServiceResult.failure(
                    "Reply target not found in this conversation",
                    error_code=ErrorCode.BAD_REQUEST,
                )

        with cls.atomic():
            message = Message.objects.create(
                conversation_id=conversation_id,
                sender=sender,
                message_type=message_type,
                content=content,
                media_urls=media_urls or [],
                file_name=file_name or "",
                file_size=file_size,
                mime_type=mime_type or "",
                duration=duration,
                reply_to=reply_to,
            )

            cls._advance_conversation_pointer(conversation_id, message)

            Participant.objects.filter(pk=participant.pk).update(
                last_read_at=message.created_at,
                last_read_message=message,
                updated_at=timezone.now(),
            )

        cls.get_logger().debug(
            f"User {sender.id} sent message {message.id} "
            f"to conversation {conversation_id}"
        )

        dispatch_conversation_event(
            conversation_id,
            sender.id,
            REALTIME_EVENTS.NEW_MESSAGE,
            MessageSerializer(message).data,
        )

        return ServiceResult.success(message)

    @classmethod
    def edit_message(
        cls,
        user: User,
        message_id: int,
        new_content: str,
    ) -> ServiceResult[Message]:
        """
        Edit a text message within the edit window.

        Window and type are checked before authorship, so an expired or
        non-text message reports INVALID_STATE to any participant.

        Error codes:
            BAD_REQUEST: Content is blank
            NOT_FOUND: Message does not exist
            FORBIDDEN: Not a participant, or not the sender
            INVALID_STATE: Window expired, not a text message, or deleted for everyone
        """
        new_content = new_content.strip() if new_content else ""
        if not new_content:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code=ErrorCode.BAD_REQUEST,
            )

        message = Message.objects.filter(id=message_id).first()
        if message is None:
            return _message_not_found()

        if not ConversationService.is_active_participant(message.conversation_id, user.id):
            return _not_participant()

        if _seconds_since(message.created_at) > MESSAGE_CONFIG.EDIT_TIME_LIMIT_SECONDS:
            return ServiceResult.failure(
                "Edit time window has expired",
                error_code=ErrorCode.INVALID_STATE,
            )

        if message.message_type != MessageType.TEXT:
            return ServiceResult.failure(
                "Only text messages can be edited",
                error_code=ErrorCode.INVALID_STATE,
            )

        if message.sender_id != user.id:
            return ServiceResult.failure(
                "You can only edit your own messages",
                error_code=ErrorCode.FORBIDDEN,
            )

        with cls.atomic():
            message = Message.objects.select_for_update().get(id=message_id)

            if message.deleted_for_all:
                return ServiceResult.failure(
                    "Cannot edit a deleted message",
                    error_code=ErrorCode.INVALID_STATE,
                )

            message.content = new_content
            message.edited_at = timezone.now()
            message.save(update_fields=["content", "edited_at", "updated_at"])

            conversation = Conversation.objects.get(pk=message.conversation_id)
            if conversation.last_message_id == message.id:
                conversation.last_message_content = message.preview
                conversation.save(update_fields=["last_message_content", "updated_at"])

        cls.get_logger().info(f"User {user.id} edited message {message.id}")

        message = _message_queryset().get(id=message.id)
        dispatch_conversation_event(
            message.conversation_id,
            user.id,
            REALTIME_EVENTS.MESSAGE_EDITED,
            MessageSerializer(message).data,
        )

        return ServiceResult.success(message)

    @classmethod
    def delete_message(
        cls,
        user: User,
        message_id: int,
        for_everyone: bool = False,
    ) -> ServiceResult[None]:
        """
        Delete a message for the requester only, or for everyone.

        For self: any participant, any time; hides the message in the
        requester's own view and leaves it untouched for everyone else.
        For everyone: sender only, within the delete window; replaces the
        content with the placeholder and clears media. Terminal.

        Error codes:
            NOT_FOUND: Message does not exist
            FORBIDDEN: Not a participant, or for-everyone by a non-sender
            INVALID_STATE: Delete window expired or already deleted for everyone
        """
        message = Message.objects.filter(id=message_id).first()
        if message is None:
            return _message_not_found()

        if not ConversationService.is_active_participant(message.conversation_id, user.id):
            return _not_participant()

        if not for_everyone:
            MessageHide.objects.get_or_create(message=message, user=user)
            cls.get_logger().info(f"User {user.id} hid message {message.id} for themselves")
            return ServiceResult.success(None)

        if message.sender_id != user.id:
            return ServiceResult.failure(
                "You can only delete your own messages for everyone",
                error_code=ErrorCode.FORBIDDEN,
            )

        if (
            _seconds_since(message.created_at)
            > MESSAGE_CONFIG.DELETE_FOR_EVERYONE_TIME_LIMIT_SECONDS
        ):
            return ServiceResult.failure(
                "Delete-for-everyone time window has expired",
                error_code=ErrorCode.INVALID_STATE,
            )

        with cls.atomic():
            message = Message.objects.select_for_update().get(id=message_id)

            if message.deleted_for_all:
                return ServiceResult.failure(
                    "Message is already deleted",
                    error_code=ErrorCode.INVALID_STATE,
                )

            message.is_deleted = True
            message.deleted_for_all = True
            message.deleted_at = timezone.now()
            message.content = MESSAGE_CONFIG.DELETED_PLACEHOLDER
            message.media_urls = []
            message.file_name = ""
            message.file_size = None
            message.mime_type = ""
            message.save(
                update_fields=[
                    "is_deleted",
                    "deleted_for_all",
                    "deleted_at",
                    "content",
                    "media_urls",
                    "file_name",
                    "file_size",
                    "mime_type",
                    "updated_at",
                ]
            )

            Conversation.objects.filter(
                pk=message.conversation_id, last_message_id=message.id
            ).update(last_message_content=MESSAGE_CONFIG.DELETED_PLACEHOLDER)

        cls.get_logger().info(f"User {user.id} deleted message {message.id} for everyone")

        dispatch_conversation_event(
            message.conversation_id,
            user.id,
            REALTIME_EVENTS.MESSAGE_DELETED,
            {
                "message_id": message.id,
                "conversation_id": message.conversation_id,
                "content": MESSAGE_CONFIG.DELETED_PLACEHOLDER,
                "deleted_for_all": True,
            },
        )

        return ServiceResult.success(None)

    @classmethod
    def mark_read(cls, user: User, message_id: int) -> ServiceResult[MessageReadReceipt]:
        """
        Record that the user read a message.

        Membership is checked before ownership, so a non-participant gets
        FORBIDDEN even for their own old messages. Repeated calls only move
        read_at forward.

        Error codes:
            NOT_FOUND: Message does not exist
            FORBIDDEN: Not an active participant
            INVALID_STATE: The message is the user's own
        """
        message = Message.objects.filter(id=message_id).first()
        if message is None:
            return _message_not_found()

        participant = ConversationService.get_active_participant(
            message.conversation_id, user.id
        )
        if not participant:
            return _not_participant()

        if message.sender_id == user.id:
            return ServiceResult.failure(
                "Cannot mark your own message as read",
                error_code=ErrorCode.INVALID_STATE,
            )

        now = timezone.now()
        with cls.atomic():
            receipt, created = MessageReadReceipt.objects.get_or_create(
                message=message,
                user=user,
                defaults={"read_at": now},
            )
            if not created and receipt.read_at < now:
                receipt.read_at = now
                receipt.save(update_fields=["read_at", "updated_at"])

            Participant.objects.filter(pk=participant.pk).filter(
                Q(last_read_at__isnull=True) | Q(last_read_at__lt=now)
            ).update(last_read_at=now, updated_at=now)
            Participant.objects.filter(pk=participant.pk).filter(
                Q(last_read_message__isnull=True) | Q(last_read_message_id__lt=message.id)
            ).update(last_read_message=message)

            Message.objects.filter(pk=message.pk).update(status=MessageStatus.SEEN)

        dispatch_to_users(
            [message.sender_id],
            REALTIME_EVENTS.MESSAGE_SEEN,
            {
                "message_id": message.id,
                "conversation_id": message.conversation_id,
                "user": UserSerializer(user).data,
                "read_at": receipt.read_at.isoformat(),
            },
        )

        return ServiceResult.success(receipt)

    @classmethod
    def create_system_message(cls, conversation: Conversation, actor: User, content: str) -> Message:
        """
        Record a membership event as a system message.

        Must be called inside the caller's transaction; moves the
        conversation pointer like any other message.
        """
        message = Message.objects.create(
            conversation=conversation,
            sender=actor,
            message_type=MessageType.SYSTEM,
            content=content,
        )
        cls._advance_conversation_pointer(conversation.id, message)
        return message


class ReactionService(BaseService):
    """
    Service for message reactions.

    react and unreact are separate operations: a duplicate react is a
    CONFLICT (callers treat it as already applied and may unreact), and
    unreact of a missing reaction is NOT_FOUND.
    """

    @classmethod
    def _get_message_for_participant(cls, user: User, message_id: int):
        """Return (message, None) or (None, failure) after the membership check."""
        message = Message.objects.filter(id=message_id).first()
        if message is None:
            return None, _message_not_found()
        if not ConversationService.is_active_participant(message.conversation_id, user.id):
            return None, _not_participant()
        return message, None

    @classmethod
    def react(cls, user: User, message_id: int, emoji: str) -> ServiceResult[MessageReaction]:
        """
        Add an emoji reaction.

        Error codes:
            NOT_FOUND: Message does not exist
            FORBIDDEN: Not an active participant
            BAD_REQUEST: Emoji outside the allow-list
            INVALID_STATE: Message deleted for everyone
            CONFLICT: Same (message, user, emoji) already exists, including a
                concurrent insert lost on the unique constraint
        """
        message, failure = cls._get_message_for_participant(user, message_id)
        if failure is not None:
            return failure

        if emoji not in REACTION_CONFIG.ALLOWED_EMOJIS:
            return ServiceResult.failure(
                "Emoji is not allowed",
                error_code=ErrorCode.BAD_REQUEST,
                errors={"emoji": [f"Allowed: {' '.join(REACTION_CONFIG.ALLOWED_EMOJIS)}"]},
            )

        if message.deleted_for_all:
            return ServiceResult.failure(
                "Cannot react to a deleted message",
                error_code=ErrorCode.INVALID_STATE,
            )

        conflict = ServiceResult.failure(
            "You already reacted with this emoji",
            error_code=ErrorCode.CONFLICT,
        )
        if MessageReaction.objects.filter(message=message, user=user, emoji=emoji).exists():
            return conflict

        try:
            with transaction.atomic():
                reaction = MessageReaction.objects.create(
                    message=message,
                    user=user,
                    emoji=emoji,
                )
        except IntegrityError:
            return conflict

        cls.get_logger().info(f"User {user.id} reacted {emoji} to message {message.id}")

        dispatch_conversation_event(
            message.conversation_id,
            user.id,
            REALTIME_EVENTS.REACTION_ADDED,
            {
                "message_id": message.id,
                "conversation_id": message.conversation_id,
                "emoji": emoji,
                "user": UserSerializer(user).data,
            },
        )

        return ServiceResult.success(reaction)

    @classmethod
    def unreact(cls, user: User, message_id: int, emoji: str) -> ServiceResult[None]:
        """
        Remove the user's reaction with this emoji.

        Error codes:
            NOT_FOUND: Message or reaction does not exist
            FORBIDDEN: Not an active participant
        """
        message, failure = cls._get_message_for_participant(user, message_id)
        if failure is not None:
            return failure

        deleted, _ = MessageReaction.objects.filter(
            message=message, user=user, emoji=emoji
        ).delete()
        if not deleted:
            return ServiceResult.failure(
                "Reaction not found",
                error_code=ErrorCode.NOT_FOUND,
            )

        dispatch_conversation_event(
            message.conversation_id,
            user.id,
            REALTIME_EVENTS.REACTION_REMOVED,
            {
                "message_id": message.id,
                "conversation_id": message.conversation_id,
                "emoji": emoji,
                "user_id": user.id,
            },
        )

        return ServiceResult.success(None)

    @classmethod
    def get_reactions(cls, user: User, message_id: int) -> ServiceResult[dict]:
        """
        Reactions on a message grouped by emoji.

        Returns:
            ServiceResult with {"reactions": {emoji: [user, ...]}, "total": n}
        """
        message, failure = cls._get_message_for_participant(user, message_id)
        if failure is not None:
            return failure

        reactions = list(
            MessageReaction.objects.filter(message=message)
            .select_related("user__profile")
            .order_by("created_at")
        )
        return ServiceResult.success(
            {"reactions": group_reactions(reactions), "total": len(reactions)}
        )


class TypingService(BaseService):
    """Typing indicators; nothing is persisted."""

    @classmethod
    def set_typing(cls, conversation_id, user: User, is_typing: bool) -> ServiceResult[None]:
        """
        Tell the other active participants that the user is (not) typing.

        Succeeds even when the realtime publisher is unconfigured.

        Error codes:
            FORBIDDEN: Not an active participant
        """
        if not ConversationService.is_active_participant(conversation_id, user.id):
            return _not_participant()

        dispatch_conversation_event(
            conversation_id,
            user.id,
            REALTIME_EVENTS.USER_TYPING,
            {
                "conversation_id": int(conversation_id),
                "user": {"id": user.id, "name": user.get_full_name()},
                "is_typing": bool(is_typing),
            },
        )
        return ServiceResult.success(None)


class PresenceService(BaseService):
    """
    Presence tracker backed by the UserPresence table.

    set_presence handles explicit transitions (focus/blur, connect/disconnect);
    heartbeat is the periodic liveness ping. There is no timeout-based
    auto-offline: a stale last_seen_at is still reported as online.
    """

    @staticmethod
    def default_presence() -> dict:
        return {"is_online": False, "last_seen_at": None, "user": None}

    @staticmethod
    def _to_dict(presence: UserPresence) -> dict:
        return {
            "is_online": presence.is_online,
            "last_seen_at": presence.last_seen_at.isoformat() if presence.last_seen_at else None,
            "user": UserSerializer(presence.user).data,
        }

    @classmethod
    def _broadcast(cls, presence: UserPresence) -> None:
        dispatch_presence_event(
            presence.user_id,
            REALTIME_EVENTS.PRESENCE_CHANGED,
            {
                "user_id": presence.user_id,
                "is_online": presence.is_online,
                "last_seen_at": presence.last_seen_at.isoformat(),
            },
        )

    @classmethod
    def set_presence(
        cls,
        user: User,
        is_online: bool = True,
        session_id: str | None = None,
    ) -> ServiceResult[UserPresence]:
        """
        Upsert the user's presence, always refreshing last_seen_at.

        Broadcasts presence-changed to everyone sharing a conversation.
        """
        defaults = {"is_online": is_online, "last_seen_at": timezone.now()}
        if session_id is not None:
            defaults["session_id"] = session_id

        presence, _ = UserPresence.objects.update_or_create(user=user, defaults=defaults)

        cls.get_logger().debug(
            f"User {user.id} is now {'online' if is_online else 'offline'}"
        )
        cls._broadcast(presence)

        return ServiceResult.success(presence)

    @classmethod
    def heartbeat(cls, user: User) -> ServiceResult[UserPresence]:
        """
        Refresh last_seen_at and force is_online=True.

        Broadcasts only when the user was not already online.
        """
        previous = UserPresence.objects.filter(user=user).values_list(
            "is_online", flat=True
        ).first()

        presence, _ = UserPresence.objects.update_or_create(
            user=user,
            defaults={"is_online": True, "last_seen_at": timezone.now()},
        )

        if not previous:
            cls._broadcast(presence)

        return ServiceResult.success(presence)

    @staticmethod
    def _connection_key(user_id) -> str:
        return PRESENCE_CONFIG.CONNECTION_COUNT_KEY.format(user_id=user_id)

    @classmethod
    def connection_opened(cls, user: User, session_id: str) -> ServiceResult[UserPresence]:
        """Count a new websocket for the user and mark them online."""
        key = cls._connection_key(user.id)
        try:
            open_connections = cache.incr(key)
        except ValueError:
            cache.set(key, 1, timeout=PRESENCE_CONFIG.CONNECTION_COUNT_TTL_SECONDS)
            open_connections = 1
        else:
            cache.touch(key, PRESENCE_CONFIG.CONNECTION_COUNT_TTL_SECONDS)

        cls.get_logger().debug(f"User {user.id} has {open_connections} open connection(s)")
        return cls.set_presence(user, is_online=True, session_id=session_id)

    @classmethod
    def connection_closed(cls, user: User, session_id: str) -> ServiceResult[UserPresence | None]:
        """
        Forget one websocket; the user goes offline only when it was the last.

        Returns:
            ServiceResult with the offline presence, or None while other
            connections of the user are still open
        """
        key = cls._connection_key(user.id)
        try:
            remaining = cache.decr(key) or 0
        except ValueError:
            remaining = 0

        if remaining > 0:
            cls.get_logger().debug(
                f"User {user.id} still has {remaining} open connection(s)"
            )
            return ServiceResult.success(None)

        cache.delete(key)
        return cls.set_presence(user, is_online=False, session_id=session_id)

    @classmethod
    def get_presence(cls, user_ids: list[int]) -> ServiceResult[dict]:
        """
        Presence for every requested user.

        Users without a stored record get the offline default; no requested
        ID is ever missing from the result.

        Returns:
            ServiceResult with {user_id: {"is_online", "last_seen_at", "user"}}
        """
        known = {
            presence.user_id: cls._to_dict(presence)
            for presence in UserPresence.objects.filter(user_id__in=user_ids).select_related(
                "user__profile"
            )
        }
        return ServiceResult.success(
            {user_id: known.get(user_id, cls.default_presence()) for user_id in user_ids}
        )
