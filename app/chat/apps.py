"""
Chat application configuration.

This app provides the realtime messaging system with:
- One-on-one and group conversations (admin/member roles)
- Message edit and delete windows, reactions and read receipts
- Presence and typing indicators
- Fan-out of events to each user's private websocket channel
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
