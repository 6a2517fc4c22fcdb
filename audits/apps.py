from django.apps import AppConfig


class AuditsConfig(AppConfig):
    name = "audits"
    verbose_name = "Audit log"

    def ready(self):
        # audit_event 수신기 등록
        from . import signals  # noqa: F401
