from rest_framework import serializers

from .models import Report, ReportType


class MessageReportIn(serializers.Serializer):
    type = serializers.ChoiceField(choices=ReportType.choices)
    description = serializers.CharField(min_length=1, max_length=500)
    screenshot = serializers.CharField(required=False, allow_blank=True, default="")


class ReportOut(serializers.ModelSerializer):
    report_id = serializers.UUIDField(source="id", read_only=True)

    class Meta:
        model = Report
        fields = ("report_id", "type", "status", "created_at")
        read_only_fields = fields
