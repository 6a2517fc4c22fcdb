from drf_spectacular.utils import extend_schema_serializer, inline_serializer
from rest_framework import serializers

# Common
ErrorOut = inline_serializer(
    name="ErrorOut",
    fields={
        "success": serializers.BooleanField(default=False),
        "message": serializers.CharField(help_text="Human readable error message."),
        "errors": serializers.DictField(required=False, help_text="필드별 검증 오류 (ValidationError 일 때만)"),
    },
)

OkOut = inline_serializer(
    name="OkOut",
    fields={"success": serializers.BooleanField(default=True), "message": serializers.CharField()},
)


def envelope_of(name: str, data):
    """
    ``{success, message, data}`` 응답 스키마를 만든다. ``data`` 는 serializer 인스턴스 또는 필드.
    목록 액션이라도 봉투 자체는 배열/페이지 스키마로 감싸지 않는다 (many=False).
    """
    fields = {"success": serializers.BooleanField(default=True), "message": serializers.CharField(), "data": data}
    return extend_schema_serializer(many=False)(type(name, (serializers.Serializer,), fields))()


# Auth
TokenRefreshOut = inline_serializer(
    name="TokenRefreshOut",
    fields={"access": serializers.CharField(), "refresh": serializers.CharField(required=False)},
)

# Moderation
StatusChangeOut = inline_serializer(
    name="StatusChangeOut",
    fields={
        "user_id": serializers.UUIDField(),
        "previous_status": serializers.CharField(),
        "new_status": serializers.CharField(),
        "reason": serializers.CharField(allow_null=True),
    },
)

MessageStatsOut = inline_serializer(
    name="MessageStatsOut",
    fields={
        "total_received": serializers.IntegerField(),
        "unread_count": serializers.IntegerField(),
        "total_replied": serializers.IntegerField(),
        "public_replies": serializers.IntegerField(),
    },
)
