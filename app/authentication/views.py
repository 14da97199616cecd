"""
Views for authentication.

Token issuance and refresh are served by djangorestframework-simplejwt
(see urls.py); this module adds the current-user endpoint.

Endpoints:
    GET /api/v1/auth/me/ - Identity of the authenticated user
"""

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import CurrentUserSerializer


class CurrentUserView(APIView):
    """Return the identity the request resolved to."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_current_user",
        summary="Get current user",
        responses={200: CurrentUserSerializer},
        tags=["Auth"],
    )
    def get(self, request):
        return Response(CurrentUserSerializer(request.user).data)
