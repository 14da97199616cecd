"""
Reel view counting service.

Services:
    ReelViewService: Record a view once per user, report view stats

A view is counted by creating its VideoView row. The counter increment
runs in the same transaction as the insert, and a lost race on the
unique (user, reel) constraint falls back to updating watch progress only,
so concurrent first views from one user count exactly once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.db.models import F

from core.services import BaseService, ErrorCode, ServiceResult

from reels.models import Reel, VideoView

if TYPE_CHECKING:
    from authentication.models import User


class ReelViewService(BaseService):
    """
    Service for reel view tracking.

    Methods:
        record_view: Count a first view, or update watch progress of a repeat view
        get_view_stats: Counter value and number of unique viewers
    """

    @classmethod
    def record_view(
        cls,
        reel_id,
        user: User,
        watch_time: int = 0,
        completed: bool = False,
    ) -> ServiceResult[dict]:
        """
        Record that user watched a reel.

        Returns:
            ServiceResult with {"views_count": int, "is_new_view": bool}

        Error codes:
            NOT_FOUND: Reel does not exist
            BAD_REQUEST: Post is not a reel
        """
        reel = Reel.objects.filter(id=reel_id).first()
        if reel is None:
            return ServiceResult.failure("Reel not found", error_code=ErrorCode.NOT_FOUND)

        if not reel.is_reel:
            return ServiceResult.failure(
                "This post is not a reel",
                error_code=ErrorCode.BAD_REQUEST,
            )

        is_new_view = True
        with cls.atomic():
            try:
                with transaction.atomic():
                    VideoView.objects.create(
                        user=user,
                        reel=reel,
                        watch_time=watch_time,
                        completed=completed,
                    )
            except IntegrityError:
                is_new_view = False

            if is_new_view:
                Reel.objects.filter(pk=reel.pk).update(views_count=F("views_count") + 1)
            else:
                updates = {"completed": completed} if completed else {}
                if watch_time:
                    updates["watch_time"] = watch_time
                if updates:
                    view = VideoView.objects.select_for_update().get(user=user, reel=reel)
                    for attr, value in updates.items():
                        setattr(view, attr, value)
                    view.save(update_fields=[*updates, "updated_at"])

        views_count = Reel.objects.values_list("views_count", flat=True).get(pk=reel.pk)

        cls.get_logger().debug(
            f"User {user.id} viewed reel {reel.pk} "
            f"({'new' if is_new_view else 'repeat'} view, total {views_count})"
        )

        return ServiceResult.success(
            {"views_count": views_count, "is_new_view": is_new_view}
        )

    @classmethod
    def get_view_stats(cls, reel_id) -> ServiceResult[dict]:
        """
        Returns:
            ServiceResult with {"views_count": int, "unique_viewers": int}

        Error codes:
            NOT_FOUND: Reel does not exist
        """
        reel = Reel.objects.filter(id=reel_id).first()
        if reel is None:
            return ServiceResult.failure("Reel not found", error_code=ErrorCode.NOT_FOUND)

        return ServiceResult.success(
            {
                "views_count": reel.views_count,
                "unique_viewers": reel.video_views.count(),
            }
        )
