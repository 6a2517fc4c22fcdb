import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q


class Message(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="received_messages", on_delete=models.CASCADE)
    # 익명 메시지는 sender=None 으로 저장
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="sent_messages", null=True, blank=True, on_delete=models.SET_NULL)
    content = models.CharField(max_length=500)
    image = models.TextField(blank=True, default="")  # URL 또는 data URI
    is_anonymous = models.BooleanField(default=True)
    is_read = models.BooleanField(default=False)

    # 답장은 메시지당 최대 1회 (write-once)
    reply_content = models.CharField(max_length=500, null=True, blank=True)
    reply_is_public = models.BooleanField(default=False)
    reply_created_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "messages"
        indexes = [
            models.Index(fields=["recipient", "-created_at"], name="idx_messages_recipient"),
            models.Index(fields=["sender", "-created_at"], name="idx_messages_sender"),
            models.Index(
                fields=["recipient", "-reply_created_at"],
                name="idx_messages_public_reply",
                condition=Q(reply_is_public=True, reply_content__isnull=False),
            ),
        ]

    def __str__(self):
        return f"Message({self.id}) -> {self.recipient_id}"

    @property
    def has_reply(self) -> bool:
        return self.reply_content is not None
