"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/realtime/ - The authenticated user's private realtime channel

Authentication:
    JWT token is passed as ?token=<jwt_access_token> or as the
    "jwt, <token>" subprotocol pair; JWTAuthMiddleware attaches the user
    to the consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/realtime/", consumers.UserConsumer.as_asgi()),
]
