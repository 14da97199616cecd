"""
Realtime fan-out publisher.

Pushes domain events (new message, typing, reaction, presence change) to
each recipient's private channel group "user_<id>" on the Channels layer.
Connected UserConsumer instances relay them to the client.

Delivery contract:
    - Fire-and-forget: the triggering request never waits on delivery.
      dispatch_* helpers hand the event to Celery via transaction.on_commit,
      so uncommitted state is never broadcast.
    - Failures are logged and dropped, never retried, never propagated.
    - Unconfigured publisher (REALTIME_FANOUT_ENABLED=False or no channel
      layer) makes every publish a no-op that still reports success.

Usage:
    from chat.realtime import dispatch_conversation_event

    dispatch_conversation_event(
        conversation_id=message.conversation_id,
        actor_id=request.user.id,
        event=REALTIME_EVENTS.NEW_MESSAGE,
        payload=MessageSerializer(message).data,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.db import transaction

from chat.constants import REALTIME_CONFIG
from chat.models import Participant

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

logger = logging.getLogger(__name__)


class RealtimePublisher:
    """
    Sends one event to one user's private channel.

    Stateless; all methods are class methods so tests can patch them.
    """

    @staticmethod
    def group_name(user_id) -> str:
        """Channel layer group for a user's private channel."""
        return f"{REALTIME_CONFIG.USER_GROUP_PREFIX}{user_id}"

    @classmethod
    def is_configured(cls) -> bool:
        """Whether events can actually be delivered."""
        if not getattr(settings, "REALTIME_FANOUT_ENABLED", True):
            return False
        return get_channel_layer() is not None

    @classmethod
    def publish(cls, user_id, event: str, payload: dict[str, Any]) -> bool:
        """
        Send one event to a user's private channel.

        Args:
            user_id: Recipient user ID
            event: Event name (see REALTIME_EVENTS)
            payload: JSON-serializable event body

        Returns:
            True if delivered or the publisher is unconfigured,
            False if delivery failed (the failure is logged).
        """
        if not cls.is_configured():
            logger.debug(f"Realtime publisher not configured, dropping {event}")
            return True

        try:
            async_to_sync(get_channel_layer().group_send)(
                cls.group_name(user_id),
                {
                    "type": REALTIME_CONFIG.CONSUMER_MESSAGE_TYPE,
                    "event": event,
                    "payload": payload,
                },
            )
        except Exception:
            logger.exception(f"Failed to publish {event} to user {user_id}")
            return False

        return True

    @classmethod
    def publish_many(cls, user_ids: Iterable, event: str, payload: dict[str, Any]) -> int:
        """
        Send the same event to several users.

        Each recipient is attempted independently; one failure does not
        stop delivery to the rest.

        Returns:
            Number of recipients for which publish reported success
        """
        return sum(1 for user_id in user_ids if cls.publish(user_id, event, payload))


# =============================================================================
# Audience resolution
# =============================================================================


def conversation_audience(conversation_id, exclude_user_id=None) -> list:
    """
    Active participants of a conversation, minus the actor.

    Used for typing, new message, reaction and edit/delete events.
    """
    queryset = Participant.objects.filter(
        conversation_id=conversation_id,
        left_at__isnull=True,
    )
    if exclude_user_id is not None:
        queryset = queryset.exclude(user_id=exclude_user_id)
    return list(queryset.values_list("user_id", flat=True))


def presence_audience(user_id) -> list:
    """
    Every user sharing at least one active conversation with user_id.

    Collects the user's active conversation IDs first, then the distinct
    other active participants across them.
    """
    conversation_ids = Participant.objects.filter(
        user_id=user_id,
        left_at__isnull=True,
    ).values_list("conversation_id", flat=True)

    return list(
        Participant.objects.filter(
            conversation_id__in=list(conversation_ids),
            left_at__isnull=True,
        )
        .exclude(user_id=user_id)
        .values_list("user_id", flat=True)
        .distinct()
        .order_by()
    )


# =============================================================================
# Dispatch (off the request path)
# =============================================================================


def _enqueue(user_ids: list, event: str, payload: dict[str, Any]) -> None:
    from chat.tasks import fan_out_event

    try:
        fan_out_event.delay(user_ids, event, payload)
    except Exception:
        # Broker outages must not turn a committed write into a failed request
        logger.exception(f"Could not enqueue {event} for {len(user_ids)} recipients")


def dispatch_to_users(user_ids: Iterable, event: str, payload: dict[str, Any]) -> None:
    """
    Schedule delivery of an event to the given users after commit.

    No-op when there are no recipients or the publisher is unconfigured.
    """
    recipients = list(dict.fromkeys(user_ids))
    if not recipients or not RealtimePublisher.is_configured():
        return

    transaction.on_commit(lambda: _enqueue(recipients, event, payload))


def dispatch_conversation_event(
    conversation_id, actor_id, event: str, payload: dict[str, Any]
) -> None:
    """Fan an event out to the other active participants of a conversation."""
    dispatch_to_users(
        conversation_audience(conversation_id, exclude_user_id=actor_id),
        event,
        payload,
    )


def dispatch_presence_event(user_id, event: str, payload: dict[str, Any]) -> None:
    """Fan a presence change out to everyone who shares a conversation with user_id."""
    dispatch_to_users(presence_audience(user_id), event, payload)
