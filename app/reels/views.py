"""
Reel view endpoints.

URL Structure:
    /api/v1/reels/{id}/view/    POST (record view), GET (view stats)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from reels.serializers import (
    ViewRecordResultSerializer,
    ViewRecordSerializer,
    ViewStatsSerializer,
)
from reels.services import ReelViewService


class ReelViewView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="record_reel_view",
        summary="Record reel view",
        description=(
            "Counts the first view of a reel by the current user. "
            "Repeat views only update watch time and completion."
        ),
        request=ViewRecordSerializer,
        responses={
            200: ViewRecordResultSerializer,
            400: OpenApiResponse(description="Post is not a reel"),
            404: OpenApiResponse(description="Reel not found"),
        },
        tags=["Reels"],
    )
    def post(self, request, pk):
        serializer = ViewRecordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ReelViewService.record_view(
            reel_id=pk,
            user=request.user,
            watch_time=serializer.validated_data["watch_time"],
            completed=serializer.validated_data["completed"],
        )
        if not result:
            raise BaseApplicationError.from_result(result)

        return Response(ViewRecordResultSerializer(result.data).data)

    @extend_schema(
        operation_id="get_reel_view_stats",
        summary="Get reel view stats",
        responses={
            200: ViewStatsSerializer,
            404: OpenApiResponse(description="Reel not found"),
        },
        tags=["Reels"],
    )
    def get(self, request, pk):
        result = ReelViewService.get_view_stats(pk)
        if not result:
            raise BaseApplicationError.from_result(result)

        return Response(ViewStatsSerializer(result.data).data)
