from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers

from users.serializers import PublicProfileOut

from .models import Message


def visible_sender(message: Message):
    # is_anonymous 플래그가 우선: 저장된 sender 가 있어도 익명이면 노출하지 않는다
    if message.is_anonymous or message.sender_id is None:
        return None
    return PublicProfileOut(message.sender).data


def reply_of(message: Message):
    if message.reply_content is None:
        return None
    return {"content": message.reply_content, "is_public": message.reply_is_public, "created_at": message.reply_created_at}


class ReplyOut(serializers.Serializer):
    content = serializers.CharField()
    is_public = serializers.BooleanField()
    created_at = serializers.DateTimeField()


class MessageOut(serializers.ModelSerializer):
    """수신함 항목. 발신자는 익명 여부에 따라 투영된다."""

    sender = serializers.SerializerMethodField()
    reply = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = ("id", "content", "image", "is_anonymous", "is_read", "sender", "reply", "created_at")
        read_only_fields = fields

    @extend_schema_field(PublicProfileOut(allow_null=True))
    def get_sender(self, obj):
        return visible_sender(obj)

    @extend_schema_field(ReplyOut(allow_null=True))
    def get_reply(self, obj):
        return reply_of(obj)


class FeedItemOut(MessageOut):
    recipient = PublicProfileOut(read_only=True)

    class Meta(MessageOut.Meta):
        fields = ("id", "content", "image", "is_anonymous", "sender", "recipient", "reply", "created_at")
        read_only_fields = fields


class PublicReplyOut(MessageOut):
    class Meta(MessageOut.Meta):
        fields = ("id", "content", "image", "is_anonymous", "sender", "reply", "created_at")
        read_only_fields = fields


class SendMessageIn(serializers.Serializer):
    recipient_id = serializers.UUIDField()
    content = serializers.CharField(min_length=1, max_length=500)
    image = serializers.CharField(required=False, allow_blank=True, default="")
    is_anonymous = serializers.BooleanField(required=False, default=True)


class SendMessageOut(serializers.Serializer):
    message_id = serializers.UUIDField()
    is_anonymous = serializers.BooleanField()


class ReplyIn(serializers.Serializer):
    content = serializers.CharField(min_length=1, max_length=500)
    is_public = serializers.BooleanField(required=False, default=False)
