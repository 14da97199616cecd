"""
Tests for reel view endpoints.

Endpoints:
    POST /api/v1/reels/{id}/view/  - Record a view
    GET  /api/v1/reels/{id}/view/  - View stats
"""

from rest_framework import status

from authentication.tests.factories import UserFactory
from core.services import ErrorCode
from reels.models import PostType
from reels.tests.factories import ReelFactory


def view_url(reel_id):
    return f"/api/v1/reels/{reel_id}/view/"


class TestReelViewEndpoint:
    def test_record_view(self, client_for, db):
        reel = ReelFactory()

        response = client_for(UserFactory()).post(
            view_url(reel.id), {"watch_time": 4, "completed": False}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"views_count": 1, "is_new_view": True}

    def test_repeat_view_reports_not_new(self, client_for, db):
        reel = ReelFactory()
        client = client_for(UserFactory())
        client.post(view_url(reel.id), {}, format="json")

        response = client.post(view_url(reel.id), {"watch_time": 9}, format="json")

        assert response.data == {"views_count": 1, "is_new_view": False}

    def test_negative_watch_time_is_400(self, client_for, db):
        reel = ReelFactory()

        response = client_for(UserFactory()).post(
            view_url(reel.id), {"watch_time": -1}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_non_reel_is_400(self, client_for, db):
        image = ReelFactory(post_type=PostType.IMAGE)

        response = client_for(UserFactory()).post(view_url(image.id), {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == ErrorCode.BAD_REQUEST

    def test_missing_reel_is_404(self, client_for, db):
        response = client_for(UserFactory()).post(view_url(999999), {}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_stats(self, client_for, db):
        reel = ReelFactory()
        client_for(UserFactory()).post(view_url(reel.id), {}, format="json")

        response = client_for(UserFactory()).get(view_url(reel.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"views_count": 1, "unique_viewers": 1}

    def test_unauthenticated_is_401(self, api_client, db):
        reel = ReelFactory()

        response = api_client.post(view_url(reel.id), {}, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
