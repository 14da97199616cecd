"""
OpenAPI schema customizations for drf-spectacular.

This module provides hooks to customize the generated OpenAPI schema,
including summaries for third-party endpoints and tag groupings for better
documentation organization in ReDoc/Swagger UI.

Tag naming follows the pattern: [App Name] - [Group Name]
Examples:
- Auth (token obtain/refresh, current user)
- Chat - Conversations
- Chat - Messages
- Chat - Reactions
- Chat - Presence
- Reels
"""

# Natural language summaries for simplejwt endpoints
# Maps operation_id to (summary, description)
AUTH_SUMMARIES = {
    "auth_token_create": (
        "Obtain token pair",
        "Authenticate with email and password to receive JWT access and refresh tokens.",
    ),
    "auth_token_refresh_create": (
        "Refresh access token",
        "Get a new access token using a valid refresh token.",
    ),
}

TAG_DESCRIPTIONS = [
    {
        "name": "Auth",
        "description": "JWT token management and the current user's identity.",
    },
    {
        "name": "Chat - Conversations",
        "description": "One-on-one and group conversations with unread counts.",
    },
    {
        "name": "Chat - Participants",
        "description": "Adding, removing and rejoining conversation participants.",
    },
    {
        "name": "Chat - Messages",
        "description": (
            "Cursor-paginated message history, sending, editing (15 minute window), "
            "deleting (for yourself, or for everyone within 1 hour), read receipts "
            "and typing indicators."
        ),
    },
    {
        "name": "Chat - Reactions",
        "description": "Emoji reactions from a fixed allow-list, grouped by emoji.",
    },
    {
        "name": "Chat - Presence",
        "description": "Online flag and last-seen timestamp per user, plus heartbeat.",
    },
    {
        "name": "Reels",
        "description": "Unique per-user reel view counting.",
    },
]


def group_endpoints(result, generator, request, public):
    """
    Postprocessing hook to group API endpoints by function.

    Auth endpoints come from simplejwt and carry no tags of their own, so
    they are grouped here by operation ID. Chat and Reels endpoints set
    tags= in @extend_schema; this hook only adds the tag descriptions.
    """
    paths = result.get("paths", {})

    for path, methods in paths.items():
        for method, operation in methods.items():
            if not isinstance(operation, dict):
                continue

            operation_id = operation.get("operationId", "")

            if operation_id in AUTH_SUMMARIES:
                summary, description = AUTH_SUMMARIES[operation_id]
                operation["summary"] = summary
                operation["description"] = description

            if operation_id.startswith("auth_"):
                operation["tags"] = ["Auth"]

    result["tags"] = TAG_DESCRIPTIONS

    return result
