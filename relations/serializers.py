from rest_framework import serializers

from users.serializers import PublicProfileOut


class BlockIn(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=200, default="")


class BlockedUserOut(serializers.Serializer):
    user = PublicProfileOut(source="blocked")
    reason = serializers.CharField()
    blocked_at = serializers.DateTimeField(source="created_at")
