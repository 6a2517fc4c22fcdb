import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from .models import AuditLog

log = logging.getLogger(__name__)


def purge_before(days: int) -> int:
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = AuditLog.objects.filter(created_at__lt=cutoff).delete()
    return deleted


@shared_task(name="audits.tasks.purge_old_audit_logs")
def purge_old_audit_logs() -> int:
    deleted = purge_before(getattr(settings, "AUDIT_RETENTION_DAYS", 90))
    log.info("Purged %s audit logs", deleted)
    return deleted
