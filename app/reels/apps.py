"""
Reels application configuration.

This app provides:
- Short-video posts (reels) with a denormalized view counter
- Unique per-user view tracking with watch time and completion
"""

from django.apps import AppConfig


class ReelsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "reels"
    verbose_name = "Reels"
