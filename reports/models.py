import uuid

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class ReportType(models.TextChoices):
    SPAM = "spam", "Spam"
    HARASSMENT = "harassment", "Harassment"
    INAPPROPRIATE_CONTENT = "inappropriate_content", "Inappropriate content"
    FAKE_ACCOUNT = "fake_account", "Fake account"
    OTHER = "other", "Other"


class ReportStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    REVIEWED = "reviewed", "Reviewed"
    RESOLVED = "resolved", "Resolved"
    DISMISSED = "dismissed", "Dismissed"


class Report(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reporter = models.ForeignKey(User, on_delete=models.CASCADE, related_name="reports_filed")
    # 메시지가 삭제돼도 신고 이력은 남는다
    reported_message = models.ForeignKey("messaging.Message", null=True, blank=True, on_delete=models.SET_NULL, related_name="reports")
    # 신고 시점의 발신자 스냅샷 (익명 메시지면 NULL)
    reported_user = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name="reports_received")
    type = models.CharField(max_length=32, choices=ReportType.choices)
    description = models.CharField(max_length=500)
    screenshot = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=ReportStatus.choices, default=ReportStatus.PENDING)
    admin_notes = models.CharField(max_length=500, blank=True, default="")
    reviewed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name="reports_reviewed")
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "reports"
        constraints = [
            models.UniqueConstraint(fields=["reporter", "reported_message"], name="uq_reports_reporter_message"),
        ]
        indexes = [
            models.Index(fields=["status", "-created_at"], name="idx_reports_status_created"),
            models.Index(fields=["type", "-created_at"], name="idx_reports_type_created"),
        ]

    def __str__(self):
        return f"Report({self.id}) {self.type}/{self.status}"
