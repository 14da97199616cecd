"""
URL configuration for reels API.

All URLs are prefixed with /api/v1/reels/ in the main URL configuration.
"""

from django.urls import path

from reels.views import ReelViewView

app_name = "reels"

urlpatterns = [
    path("<int:pk>/view/", ReelViewView.as_view(), name="reel-view"),
]
