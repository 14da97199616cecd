"""
Tests for ReelViewService.

Verifies:
- A user's first view increments the counter exactly once
- Repeat views only update watch progress
- Posts that are not reels are rejected
- View stats report the counter and unique viewers
"""

from core.services import ErrorCode
from authentication.tests.factories import UserFactory
from reels.models import PostType, Reel, VideoView
from reels.services import ReelViewService
from reels.tests.factories import ReelFactory, VideoViewFactory


class TestRecordView:
    def test_first_view_counts(self, db):
        reel = ReelFactory()
        viewer = UserFactory()

        result = ReelViewService.record_view(reel.id, viewer, watch_time=5)

        assert result.success is True
        assert result.data == {"views_count": 1, "is_new_view": True}
        assert VideoView.objects.get(reel=reel, user=viewer).watch_time == 5

    def test_repeat_view_does_not_count_again(self, db):
        reel = ReelFactory()
        viewer = UserFactory()
        ReelViewService.record_view(reel.id, viewer)

        result = ReelViewService.record_view(reel.id, viewer)

        assert result.data == {"views_count": 1, "is_new_view": False}
        assert Reel.objects.get(pk=reel.pk).views_count == 1
        assert VideoView.objects.filter(reel=reel).count() == 1

    def test_repeat_view_updates_watch_progress(self, db):
        reel = ReelFactory()
        viewer = UserFactory()
        ReelViewService.record_view(reel.id, viewer, watch_time=3)

        ReelViewService.record_view(reel.id, viewer, watch_time=12, completed=True)

        view = VideoView.objects.get(reel=reel, user=viewer)
        assert view.watch_time == 12
        assert view.completed is True

    def test_repeat_view_never_uncompletes(self, db):
        reel = ReelFactory()
        viewer = UserFactory()
        ReelViewService.record_view(reel.id, viewer, completed=True)

        ReelViewService.record_view(reel.id, viewer, completed=False)

        assert VideoView.objects.get(reel=reel, user=viewer).completed is True

    def test_distinct_viewers_each_count(self, db):
        reel = ReelFactory()

        for _ in range(3):
            ReelViewService.record_view(reel.id, UserFactory())

        assert Reel.objects.get(pk=reel.pk).views_count == 3

    def test_existing_view_row_is_treated_as_repeat(self, db):
        reel = ReelFactory(views_count=1)
        existing = VideoViewFactory(reel=reel)

        result = ReelViewService.record_view(reel.id, existing.user, watch_time=7)

        assert result.data["is_new_view"] is False
        assert result.data["views_count"] == 1

    def test_non_reel_post_is_bad_request(self, db):
        video = ReelFactory(post_type=PostType.VIDEO)

        result = ReelViewService.record_view(video.id, UserFactory())

        assert result.error_code == ErrorCode.BAD_REQUEST
        assert not VideoView.objects.exists()

    def test_missing_reel_is_not_found(self, db):
        result = ReelViewService.record_view(999999, UserFactory())

        assert result.error_code == ErrorCode.NOT_FOUND


class TestGetViewStats:
    def test_reports_counter_and_unique_viewers(self, db):
        reel = ReelFactory()
        ReelViewService.record_view(reel.id, UserFactory())
        ReelViewService.record_view(reel.id, UserFactory())

        assert ReelViewService.get_view_stats(reel.id).data == {
            "views_count": 2,
            "unique_viewers": 2,
        }

    def test_missing_reel_is_not_found(self, db):
        assert ReelViewService.get_view_stats(999999).error_code == ErrorCode.NOT_FOUND
