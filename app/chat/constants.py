"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Message lifecycle (edit and delete-for-everyone windows, previews)
- Message listing (cursor page sizes)
- Reactions (emoji allow-list)
- Realtime event names pushed to user channels

Import example:
    from chat.constants import MESSAGE_CONFIG, REACTION_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters

    # Edit settings
    EDIT_TIME_LIMIT_SECONDS: Final[int] = 900  # 15 minutes

    # Delete-for-everyone settings
    DELETE_FOR_EVERYONE_TIME_LIMIT_SECONDS: Final[int] = 3600  # 1 hour
    DELETED_PLACEHOLDER: Final[str] = "This message was deleted"

    # Conversation list preview of the last message
    PREVIEW_LENGTH: Final[int] = 100


# =============================================================================
# Pagination Configuration
# =============================================================================


class PAGINATION_CONFIG:
    """Cursor pagination for message listing."""

    DEFAULT_LIMIT: Final[int] = 50
    MAX_LIMIT: Final[int] = 100


# =============================================================================
# Reaction Configuration
# =============================================================================


class REACTION_CONFIG:
    """Configuration for message reactions."""

    ALLOWED_EMOJIS: Final[tuple] = ("👍", "❤️", "😂", "😮", "😢", "😠")
    MAX_EMOJI_LENGTH: Final[int] = 10


# =============================================================================
# Realtime Configuration
# =============================================================================


class REALTIME_EVENTS:
    """Event names delivered on a user's private channel."""

    NEW_MESSAGE: Final[str] = "new-message"
    MESSAGE_EDITED: Final[str] = "message-edited"
    MESSAGE_DELETED: Final[str] = "message-deleted"
    MESSAGE_SEEN: Final[str] = "message-seen"
    REACTION_ADDED: Final[str] = "reaction-added"
    REACTION_REMOVED: Final[str] = "reaction-removed"
    USER_TYPING: Final[str] = "user-typing"
    PRESENCE_CHANGED: Final[str] = "presence-changed"
    PARTICIPANTS_CHANGED: Final[str] = "participants-changed"


class REALTIME_CONFIG:
    """Channel naming for realtime fan-out."""

    USER_GROUP_PREFIX: Final[str] = "user_"
    # Channels message type handled by UserConsumer.realtime_event
    CONSUMER_MESSAGE_TYPE: Final[str] = "realtime.event"


# =============================================================================
# Presence Configuration
# =============================================================================


class PRESENCE_CONFIG:
    """Open websocket bookkeeping per user."""

    CONNECTION_COUNT_KEY: Final[str] = "presence:connections:{user_id}"
    # Refreshed on every connect; bounds drift left by crashed workers
    CONNECTION_COUNT_TTL_SECONDS: Final[int] = 60 * 60 * 24
