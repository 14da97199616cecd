from rest_framework import serializers


class ViewRecordSerializer(serializers.Serializer):
    """Watch progress reported by the client."""

    watch_time = serializers.IntegerField(required=False, default=0, min_value=0)
    completed = serializers.BooleanField(required=False, default=False)


class ViewRecordResultSerializer(serializers.Serializer):
    views_count = serializers.IntegerField()
    is_new_view = serializers.BooleanField()


class ViewStatsSerializer(serializers.Serializer):
    views_count = serializers.IntegerField()
    unique_viewers = serializers.IntegerField()
