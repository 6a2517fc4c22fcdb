from rest_framework import serializers

from .models import AuditLog


class AuditLogOut(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = AuditLog
        fields = ["id", "user_id", "action", "target_type", "target_id", "extra", "created_at"]
        read_only_fields = fields
