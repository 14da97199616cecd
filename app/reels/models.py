"""
Reel models.

Models:
    Reel: A video post with a denormalized views_count
    VideoView: One row per (user, reel); its existence is what a view counts

views_count only ever moves together with the creation of a VideoView row
(see ReelViewService.record_view), so it equals the number of VideoView
rows for the reel.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


class PostType(models.TextChoices):
    REEL = "reel", "Reel"
    VIDEO = "video", "Video"
    IMAGE = "image", "Image"


class Reel(BaseModel):
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reels",
        help_text="User who posted this reel",
    )
    caption = models.TextField(blank=True, default="")
    video_url = models.URLField(max_length=500, blank=True, default="")
    post_type = models.CharField(
        max_length=10,
        choices=PostType.choices,
        default=PostType.REEL,
        db_index=True,
    )
    views_count = models.PositiveIntegerField(
        default=0,
        help_text="Number of distinct users who viewed this reel",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Reel {self.pk} by {self.author_id}"

    @property
    def is_reel(self) -> bool:
        return self.post_type == PostType.REEL


class VideoView(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="video_views",
    )
    reel = models.ForeignKey(
        Reel,
        on_delete=models.CASCADE,
        related_name="video_views",
    )
    watch_time = models.PositiveIntegerField(
        default=0,
        help_text="Seconds watched, as last reported by the client",
    )
    completed = models.BooleanField(default=False)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "reel"],
                name="unique_video_view",
            ),
        ]

    def __str__(self) -> str:
        return f"User {self.user_id} viewed reel {self.reel_id}"
