"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                          GET, POST
        /conversations/{id}/                     GET
        /conversations/{id}/participants/        POST, DELETE (?user_id=)
        /conversations/{id}/messages/            GET (?cursor=&limit=), POST
        /conversations/{id}/typing/              POST

    Messages:
        /messages/{id}/                          PATCH, DELETE (?for_everyone=true)
        /messages/{id}/reactions/                GET, POST, DELETE (?emoji=)
        /messages/{id}/read/                     POST

    Presence:
        /presence/                               GET (?user_ids=), POST, PATCH

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import path

from chat.views import ConversationViewSet, MessageViewSet, PresenceView

app_name = "chat"

urlpatterns = [
    path(
        "conversations/",
        ConversationViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-list",
    ),
    path(
        "conversations/<int:pk>/",
        ConversationViewSet.as_view({"get": "retrieve"}),
        name="conversation-detail",
    ),
    path(
        "conversations/<int:pk>/participants/",
        ConversationViewSet.as_view(
            {"post": "add_participants", "delete": "remove_participant"}
        ),
        name="conversation-participants",
    ),
    path(
        "conversations/<int:pk>/messages/",
        ConversationViewSet.as_view({"get": "list_messages", "post": "send_message"}),
        name="conversation-messages",
    ),
    path(
        "conversations/<int:pk>/typing/",
        ConversationViewSet.as_view({"post": "typing"}),
        name="conversation-typing",
    ),
    path(
        "messages/<int:pk>/",
        MessageViewSet.as_view({"patch": "partial_update", "delete": "destroy"}),
        name="message-detail",
    ),
    path(
        "messages/<int:pk>/reactions/",
        MessageViewSet.as_view({"get": "reactions", "post": "react", "delete": "unreact"}),
        name="message-reactions",
    ),
    path(
        "messages/<int:pk>/read/",
        MessageViewSet.as_view({"post": "read"}),
        name="message-read",
    ),
    path("presence/", PresenceView.as_view(), name="presence"),
]
