"""
URL configuration for the Django application.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /api/schema/                   - OpenAPI schema (YAML)
    /api/docs/                     - Swagger UI
    /api/v1/auth/                  - Authentication endpoints (simplejwt)
        token/                     - Obtain access/refresh pair
        token/refresh/             - Refresh access token
        me/                        - Current user
    /api/v1/chat/                  - Chat endpoints (see chat.urls)
        conversations/             - Conversation list/create
        conversations/{id}/        - Conversation detail
        conversations/{id}/participants/ - Add/remove participants
        conversations/{id}/messages/ - Message page/send
        conversations/{id}/typing/ - Typing indicator
        messages/{id}/             - Edit/delete message
        messages/{id}/reactions/   - Get/add/remove reactions
        messages/{id}/read/        - Mark read
        presence/                  - Get/set presence, heartbeat
    /api/v1/reels/                 - Reel endpoints
        {id}/view/                 - Record view / view stats

WebSocket routes live in chat.routing and are mounted in config.asgi.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("chat/", include("chat.urls")),
    path("reels/", include("reels.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Realtime Conversation Admin"
admin.site.site_title = "Admin Portal"
admin.site.index_title = "Conversations, presence and reels"
