from rest_framework import serializers

from .models import Notification


class NotificationOut(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ("id", "type", "payload", "is_read", "emailed", "created_at")
        read_only_fields = fields


class MarkReadIn(serializers.Serializer):
    ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
