"""
Celery tasks for chat app.

This module defines async tasks for:
- Realtime fan-out of domain events to user channels

Related files:
    - realtime.py: RealtimePublisher and dispatch helpers (enqueue side)

Usage:
    from chat.tasks import fan_out_event

    fan_out_event.delay([2, 3], "user-typing", {"conversation_id": 1, ...})
"""

import logging

from celery import shared_task

from chat.realtime import RealtimePublisher

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def fan_out_event(user_ids: list, event: str, payload: dict) -> int:
    """
    Deliver one event to each user's private channel.

    Best-effort: failures are logged by the publisher and never retried,
    so no autoretry is configured on this task.

    Args:
        user_ids: Recipient user IDs
        event: Event name (see REALTIME_EVENTS)
        payload: JSON-serializable event body

    Returns:
        Number of recipients delivered to
    """
    delivered = RealtimePublisher.publish_many(user_ids, event, payload)

    if delivered < len(user_ids):
        logger.warning(
            f"Delivered {event} to {delivered}/{len(user_ids)} recipients"
        )
    else:
        logger.debug(f"Delivered {event} to {delivered} recipients")

    return delivered
