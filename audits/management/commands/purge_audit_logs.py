from django.conf import settings
from django.core.management.base import BaseCommand

from audits.tasks import purge_before


class Command(BaseCommand):
    help = "Delete audit logs older than AUDIT_RETENTION_DAYS (default: 90)."

    def add_arguments(self, parser):
        parser.add_argument("--days", type=int, default=None, help="Override AUDIT_RETENTION_DAYS")

    def handle(self, *args, **options):
        days = options["days"] if options["days"] is not None else getattr(settings, "AUDIT_RETENTION_DAYS", 90)
        deleted = purge_before(days)
        self.stdout.write(self.style.SUCCESS(f"Purged {deleted} audit logs older than {days} days."))
