from rest_framework import serializers

from messaging.models import Message
from reports.models import Report
from users.models import User, UserStatus

from .services import REVIEW_STATUSES, CascadeAction


class UserBriefOut(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("id", "username", "email", "first_name", "last_name", "status")
        read_only_fields = fields


class MessageBriefOut(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = ("id", "content", "image", "is_anonymous", "created_at")
        read_only_fields = fields


class AdminUserOut(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = (
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "bio",
            "avatar",
            "message_link",
            "status",
            "is_admin",
            "allow_anonymous_messages",
            "email_notifications",
            "created_at",
            "last_login",
        )
        read_only_fields = fields


class AdminUserListOut(AdminUserOut):
    stats = serializers.SerializerMethodField()

    class Meta(AdminUserOut.Meta):
        fields = AdminUserOut.Meta.fields + ("stats",)
        read_only_fields = fields

    def get_stats(self, obj) -> dict:
        # list_users() 의 annotate 결과
        return {
            "messages_received": obj.messages_received,
            "messages_sent": obj.messages_sent,
            "followers_count": obj.followers_count,
            "following_count": obj.following_count,
            "reports_against": obj.reports_against,
        }


class AdminMessageOut(serializers.ModelSerializer):
    # 관리자 뷰: 저장된 발신자를 그대로 보여준다 (익명 메시지는 저장 시점부터 NULL)
    sender = UserBriefOut(allow_null=True)
    recipient = UserBriefOut()

    class Meta:
        model = Message
        fields = ("id", "sender", "recipient", "content", "image", "is_anonymous", "is_read", "reply_content", "reply_is_public", "reply_created_at", "created_at")
        read_only_fields = fields


class AdminReportOut(serializers.ModelSerializer):
    reporter = UserBriefOut()
    reported_user = UserBriefOut(allow_null=True)
    reported_message = MessageBriefOut(allow_null=True)
    reviewed_by = UserBriefOut(allow_null=True)

    class Meta:
        model = Report
        fields = (
            "id",
            "type",
            "status",
            "description",
            "screenshot",
            "admin_notes",
            "reporter",
            "reported_user",
            "reported_message",
            "reviewed_by",
            "reviewed_at",
            "created_at",
        )
        read_only_fields = fields


class ReviewActionIn(serializers.Serializer):
    type = serializers.ChoiceField(choices=CascadeAction.choices)


class ReviewIn(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s.value for s in REVIEW_STATUSES])
    admin_notes = serializers.CharField(required=False, allow_blank=True, max_length=500, default="")
    action = ReviewActionIn(required=False, allow_null=True)


class ReviewOut(serializers.Serializer):
    report = AdminReportOut()
    action = serializers.CharField(allow_null=True)
    action_applied = serializers.BooleanField()


class StatusChangeIn(serializers.Serializer):
    status = serializers.ChoiceField(choices=UserStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=200)


class AdminDeleteIn(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=200)


class UserDetailOut(serializers.Serializer):
    user = AdminUserOut()
    stats = serializers.DictField(child=serializers.IntegerField())
    recent_activity = serializers.SerializerMethodField()

    def get_recent_activity(self, obj) -> dict:
        activity = obj["recent_activity"]
        return {
            "messages": AdminMessageOut(activity["messages"], many=True).data,
            "reports": AdminReportOut(activity["reports"], many=True).data,
        }
