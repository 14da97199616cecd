"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Model properties and constraints
- test_services.py: Conversation, participant and message service tests
- test_message_lifecycle.py: Edit and delete windows
- test_reactions.py / test_presence.py: Reaction and presence services
- test_realtime.py: Publisher, audiences and fan-out task
- test_middleware.py / test_consumers.py: Websocket authentication and consumer
- test_views.py: REST API endpoint tests
- test_integration.py: End-to-end conversation journey

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
