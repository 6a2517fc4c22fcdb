import uuid

from django.conf import settings
from django.db import models


class AuditAction(models.TextChoices):
    LOGIN = "login", "Login"
    LOGOUT = "logout", "Logout"
    REPORT_MESSAGE = "report_message", "Report Message"
    CHANGE_USER_STATUS = "change_user_status", "Change User Status"
    REVIEW_REPORT = "review_report", "Review Report"
    DELETE_MESSAGE = "delete_message", "Delete Message"


class AuditLog(models.Model):
    # PII 최소화를 위해 IP/UA는 평문 대신 HMAC-SHA256 해시만 저장한다.
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="audit_logs")
    action = models.CharField(max_length=32, choices=AuditAction.choices, db_index=True)
    target_type = models.CharField(max_length=32, blank=True, default="", db_index=True)  # "user", "message", "report"
    target_id = models.UUIDField(null=True, blank=True, db_index=True)
    ip_hash = models.CharField(max_length=64, null=True, blank=True)
    ua_hash = models.CharField(max_length=64, null=True, blank=True)
    extra = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "audit_logs"
        indexes = [
            models.Index(fields=["user", "-created_at"], name="audit_user_created_idx"),
            models.Index(fields=["action", "-created_at"], name="audit_action_created_idx"),
            models.Index(fields=["target_type", "target_id", "-created_at"], name="audit_target_created_idx"),
        ]

    def __str__(self):
        return f"[{self.created_at.isoformat()}] {self.user_id} {self.action} {self.target_type}:{self.target_id}"
