"""
Serializers for authentication models.

This module provides DRF serializers for:
- UserSerializer: Public identity payload embedded in chat and presence data
- CurrentUserSerializer: The authenticated user's own account details

Related files:
    - models.py: User and Profile models
    - views.py: CurrentUserView
"""

from rest_framework import serializers

from authentication.models import User


class UserSerializer(serializers.ModelSerializer):
    """
    Public identity of a user as seen by other users.

    Output:
        {"id": 1, "name": "Ada Lovelace", "image": "https://..."}
    """

    name = serializers.CharField(source="get_full_name", read_only=True)
    image = serializers.CharField(source="avatar_url", read_only=True, allow_null=True)

    class Meta:
        model = User
        fields = ["id", "name", "image"]
        read_only_fields = fields


class CurrentUserSerializer(serializers.ModelSerializer):
    """Serializer for the authenticated user's own account."""

    name = serializers.CharField(source="get_full_name", read_only=True)
    image = serializers.CharField(source="avatar_url", read_only=True, allow_null=True)
    username = serializers.CharField(source="profile.username", read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "name", "username", "image", "date_joined"]
        read_only_fields = fields
