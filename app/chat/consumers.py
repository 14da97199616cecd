"""
WebSocket consumer for realtime delivery.

Each authenticated connection joins the user's private channel group
"user_<id>". Domain events published by chat.realtime arrive as
"realtime.event" layer messages and are relayed to the client.

Consumers:
    UserConsumer: Per-user realtime channel, presence and typing

Authentication:
    JWTAuthMiddleware attaches the user to self.scope["user"].
    Anonymous connections are closed with code 4001.

Message Types (from client):
    - typing: {"type": "typing", "conversation_id": 1, "is_typing": true}
    - heartbeat: {"type": "heartbeat"}

Message Types (to client):
    - {"event": "<event-name>", "payload": {...}}
    - {"type": "heartbeat", "status": "ok"}
    - {"type": "error", "error": "...", "error_code": "..."}
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from core.services import ErrorCode
from chat.middleware import JWT_SUBPROTOCOL
from chat.realtime import RealtimePublisher
from chat.services import PresenceService, TypingService

logger = logging.getLogger(__name__)

CLOSE_CODE_UNAUTHENTICATED = 4001


class UserConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for a user's private realtime channel.

    Handles:
        - Rejecting unauthenticated connections
        - Joining/leaving the user's channel group
        - Marking presence online on connect and offline once the user's
          last connection closes
        - Typing frames and heartbeat frames
        - Relaying published events to the client

    Attributes:
        user: Authenticated user (after connect)
        group_name: Channel layer group for the user
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = None
        self.group_name: str | None = None

    async def connect(self):
        user = self.scope.get("user")

        if not user or not user.is_authenticated:
            logger.warning("Rejected unauthenticated realtime connection")
            await self.close(code=CLOSE_CODE_UNAUTHENTICATED)
            return

        self.user = user
        self.group_name = RealtimePublisher.group_name(user.id)

        await self.channel_layer.group_add(self.group_name, self.channel_name)

        subprotocol = (
            JWT_SUBPROTOCOL if JWT_SUBPROTOCOL in self.scope.get("subprotocols", []) else None
        )
        await self.accept(subprotocol=subprotocol)

        await database_sync_to_async(PresenceService.connection_opened)(
            user, self.channel_name
        )
        logger.info(f"User {user.id} connected to realtime channel")

    async def disconnect(self, close_code):
        if not self.group_name:
            return

        await self.channel_layer.group_discard(self.group_name, self.channel_name)
        await database_sync_to_async(PresenceService.connection_closed)(
            self.user, self.channel_name
        )
        logger.info(f"User {self.user.id} disconnected from realtime channel ({close_code})")

    async def receive_json(self, content, **kwargs):
        """
        Handle incoming frames.

        Expected frame format:
            {"type": "typing", "conversation_id": 1, "is_typing": true}
            {"type": "heartbeat"}
        """
        frame_type = content.get("type") if isinstance(content, dict) else None

        if frame_type == "typing":
            await self._handle_typing(content)
        elif frame_type == "heartbeat":
            await database_sync_to_async(PresenceService.heartbeat)(self.user)
            await self.send_json({"type": "heartbeat", "status": "ok"})
        else:
            await self._send_error(
                f"Unknown message type: {frame_type}", ErrorCode.BAD_REQUEST
            )

    async def _handle_typing(self, content):
        conversation_id = content.get("conversation_id")
        if not isinstance(conversation_id, int):
            await self._send_error("conversation_id is required", ErrorCode.BAD_REQUEST)
            return

        result = await database_sync_to_async(TypingService.set_typing)(
            conversation_id,
            self.user,
            bool(content.get("is_typing", True)),
        )
        if not result:
            await self._send_error(result.error, result.error_code)

    async def realtime_event(self, event):
        """Relay a published event to the client."""
        await self.send_json({"event": event["event"], "payload": event["payload"]})

    async def _send_error(self, message: str, error_code: str):
        await self.send_json({"type": "error", "error": message, "error_code": error_code})
