from django.contrib import admin

from reels.models import Reel, VideoView


@admin.register(Reel)
class ReelAdmin(admin.ModelAdmin):
    list_display = ["id", "author", "post_type", "views_count", "created_at"]
    list_filter = ["post_type", "created_at"]
    search_fields = ["caption", "author__email"]
    readonly_fields = ["views_count", "created_at", "updated_at"]
    raw_id_fields = ["author"]
    ordering = ["-created_at"]


@admin.register(VideoView)
class VideoViewAdmin(admin.ModelAdmin):
    list_display = ["id", "reel", "user", "watch_time", "completed", "created_at"]
    list_filter = ["completed"]
    raw_id_fields = ["reel", "user"]
