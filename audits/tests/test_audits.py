import uuid
from datetime import timedelta

import pytest
from django.core.management import call_command
from django.test import RequestFactory
from django.utils import timezone
from rest_framework.test import APIClient

from audits.models import AuditAction, AuditLog
from audits.services import write_audit_log
from audits.signals import audit_event
from audits.tasks import purge_old_audit_logs
from audits.utils import client_ip, salted_digest
from users.models import User

URL = "/api/v1/admin/audits"


def make_user(name, **extra):
    return User.objects.create_user(name, f"{name}@example.com", "pw-123456", **extra)


@pytest.mark.django_db
class TestAuditLogs:
    def test_write_with_request_hashes_and_records_endpoint(self):
        u = make_user("alice")
        request = RequestFactory().post("/api/v1/messages/x/report", HTTP_USER_AGENT="pytest-ua", REMOTE_ADDR="203.0.113.10")

        log = write_audit_log(action=AuditAction.REPORT_MESSAGE, user=u, target_type="message", target_id=uuid.uuid4(), request=request, extra={"type": "spam"})
        assert log.ip_hash == salted_digest("203.0.113.10")
        assert log.ua_hash == salted_digest("pytest-ua")
        assert log.extra == {"type": "spam", "endpoint": "POST /api/v1/messages/x/report"}

    def test_forwarded_for_untrusted_by_default(self):
        request = RequestFactory().get("/", HTTP_X_FORWARDED_FOR="198.51.100.1", REMOTE_ADDR="10.0.0.7")
        assert client_ip(request) == "10.0.0.7"

    def test_forwarded_for_takes_first_hop_when_trusted(self, settings):
        settings.AUDIT_TRUST_FORWARDED_FOR = True
        request = RequestFactory().get("/", HTTP_X_FORWARDED_FOR="198.51.100.1, 10.0.0.1")
        assert client_ip(request) == "198.51.100.1"

    def test_hash_uses_salt(self, settings):
        settings.AUDIT_HASH_SALT = "a"
        first = salted_digest("203.0.113.10")
        settings.AUDIT_HASH_SALT = "b"
        assert salted_digest("203.0.113.10") != first
        assert salted_digest("") is None

    def test_signal_emits_and_hashes(self):
        u = make_user("sig")
        audit_event.send(sender=None, action=AuditAction.LOGIN, user_id=u.id, target_type="user", target_id=u.id, ip="203.0.113.10", ua="pytest-ua", extra={"k": "v"})
        row = AuditLog.objects.get(user=u, action=AuditAction.LOGIN)
        assert row.ip_hash and row.ua_hash
        assert row.ip_hash != "203.0.113.10" and row.ua_hash != "pytest-ua"
        assert row.extra == {"k": "v", "_via": "signal"}

    def test_signal_for_unknown_user_is_ignored(self):
        audit_event.send(sender=None, action=AuditAction.LOGOUT, user_id=uuid.uuid4())
        assert not AuditLog.objects.exists()

    def test_login_is_audited(self):
        make_user("alice")
        res = APIClient().post("/api/v1/auth/login", {"email": "alice@example.com", "password": "pw-123456"}, format="json")
        assert res.status_code == 200
        assert AuditLog.objects.filter(action=AuditAction.LOGIN).count() == 1


@pytest.mark.django_db
class TestAuditLogEndpoint:
    @pytest.fixture(autouse=True)
    def _setup(self):
        self.client = APIClient()
        self.admin = make_user("root", is_admin=True)
        self.alice = make_user("alice")
        self.client.force_authenticate(self.admin)

    def test_admin_only(self):
        self.client.force_authenticate(self.alice)
        assert self.client.get(URL).status_code == 403

    def test_list_newest_first_and_filters(self):
        target = uuid.uuid4()
        old = write_audit_log(action=AuditAction.LOGIN, user=self.alice)
        AuditLog.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=2))
        review = write_audit_log(action=AuditAction.REVIEW_REPORT, user=self.admin, target_type="report", target_id=target)

        data = self.client.get(URL).json()["data"]
        assert [row["id"] for row in data["logs"]] == [str(review.id), str(old.id)]
        assert data["pagination"]["count"] == 2

        by_action = self.client.get(URL, {"action": "review_report"}).json()["data"]["logs"]
        assert [row["target_id"] for row in by_action] == [str(target)]
        by_user = self.client.get(URL, {"user_id": str(self.alice.id)}).json()["data"]["logs"]
        assert [row["user_id"] for row in by_user] == [str(self.alice.id)]

        since = (timezone.now() - timedelta(days=1)).isoformat()
        recent = self.client.get(URL, {"since": since}).json()["data"]["logs"]
        assert [row["id"] for row in recent] == [str(review.id)]

    def test_bad_filters_rejected(self):
        assert self.client.get(URL, {"user_id": "nope"}).status_code == 400
        assert self.client.get(URL, {"since": "yesterday"}).status_code == 400


@pytest.mark.django_db
class TestRetention:
    def _aged(self, user, days):
        row = write_audit_log(action=AuditAction.LOGOUT, user=user)
        AuditLog.objects.filter(pk=row.pk).update(created_at=timezone.now() - timedelta(days=days))
        return row

    def test_purge_management_command(self):
        u = make_user("old")
        stale, fresh = self._aged(u, 120), self._aged(u, 10)

        call_command("purge_audit_logs")
        assert not AuditLog.objects.filter(pk=stale.pk).exists()
        assert AuditLog.objects.filter(pk=fresh.pk).exists()

        call_command("purge_audit_logs", "--days", "5")
        assert not AuditLog.objects.exists()

    def test_purge_task_uses_retention_setting(self, settings):
        settings.AUDIT_RETENTION_DAYS = 30
        u = make_user("old")
        self._aged(u, 31)
        keep = self._aged(u, 29)

        assert purge_old_audit_logs() == 1
        assert list(AuditLog.objects.values_list("pk", flat=True)) == [keep.pk]
