import uuid

import pytest
from rest_framework.test import APIClient

from messaging.models import Message
from notifications.models import Notification
from relations.models import Block, Follow
from users.models import User, UserStatus

BASE = "/api/v1/messages"


def make_user(name, **extra):
    return User.objects.create_user(name, f"{name}@example.com", "pw-123456", **extra)


@pytest.mark.django_db
class TestSendMessage:
    @pytest.fixture(autouse=True)
    def _setup(self):
        self.client = APIClient()

    def _send(self, recipient, user=None, **body):
        self.client.force_authenticate(user=user)
        payload = {"recipient_id": str(recipient.id), "content": "hello", **body}
        return self.client.post(BASE, payload, format="json")

    def test_anonymous_hello_lands_in_inbox_without_sender(self, django_capture_on_commit_callbacks):
        a, b = make_user("alice"), make_user("bob")

        with django_capture_on_commit_callbacks(execute=True):
            res = self._send(b, user=a, is_anonymous=True)
        assert res.status_code == 201
        assert res.json()["data"]["is_anonymous"] is True

        stored = Message.objects.get()
        assert stored.sender_id is None and stored.recipient_id == b.id

        self.client.force_authenticate(b)
        inbox = self.client.get(f"{BASE}/inbox").json()["data"]
        assert inbox["unread_count"] == 1
        assert inbox["messages"][0]["content"] == "hello"
        assert inbox["messages"][0]["sender"] is None
        assert inbox["messages"][0]["reply"] is None

        # 알림은 커밋 이후 발송
        assert Notification.objects.filter(user=b, type="new_message").exists()

    def test_unauthenticated_caller_is_always_anonymous(self):
        b = make_user("bob")
        res = self._send(b, is_anonymous=False)
        assert res.status_code == 201
        assert res.json()["data"]["is_anonymous"] is True
        assert Message.objects.get().sender_id is None

    def test_identified_message_exposes_sender(self):
        a, b = make_user("alice"), make_user("bob")
        assert self._send(b, user=a, is_anonymous=False).status_code == 201

        self.client.force_authenticate(b)
        item = self.client.get(f"{BASE}/inbox").json()["data"]["messages"][0]
        assert item["sender"]["username"] == "alice"
        assert "email" not in item["sender"]

    def test_anonymity_flag_is_authoritative_for_projection(self):
        a, b = make_user("alice"), make_user("bob")
        # 저장소가 어긋난 경우에도 is_anonymous 가 우선
        Message.objects.create(recipient=b, sender=a, content="hi", is_anonymous=True)

        self.client.force_authenticate(b)
        item = self.client.get(f"{BASE}/inbox").json()["data"]["messages"][0]
        assert item["sender"] is None

    def test_recipient_missing_or_inactive_404(self):
        banned = make_user("bob", status=UserStatus.BANNED)
        assert self._send(banned).status_code == 404

        self.client.force_authenticate(None)
        res = self.client.post(BASE, {"recipient_id": str(uuid.uuid4()), "content": "x"}, format="json")
        assert res.status_code == 404
        assert res.json()["message"] == "Recipient not found"

    def test_anonymous_rejected_by_recipient_403(self):
        a = make_user("alice")
        b = make_user("bob", allow_anonymous_messages=False)

        assert self._send(b, user=a, is_anonymous=True).status_code == 403
        assert self._send(b, is_anonymous=False).status_code == 403
        # 실명 메시지는 허용
        assert self._send(b, user=a, is_anonymous=False).status_code == 201

    def test_unauthenticated_identified_request_checks_anonymity_setting(self):
        # 비로그인 호출자는 is_anonymous=false 여도 익명으로 저장되므로 수신자의 익명 거부가 적용된다
        b = make_user("bob", allow_anonymous_messages=False)
        res = self._send(b, is_anonymous=False)
        assert res.status_code == 403
        assert res.json()["success"] is False
        assert not Message.objects.exists()

    def test_blocked_either_way_forbids_both_directions(self):
        a, b = make_user("alice"), make_user("bob")
        Block.objects.create(blocker=a, blocked=b)

        assert self._send(b, user=a, is_anonymous=False).status_code == 403
        assert self._send(a, user=b, is_anonymous=False).status_code == 403
        # 익명 요청이라도 인증된 발신자면 차단 정책 적용
        assert self._send(a, user=b, is_anonymous=True).status_code == 403
        assert not Message.objects.exists()

    def test_cannot_message_self(self):
        a = make_user("alice")
        res = self._send(a, user=a, is_anonymous=False)
        assert res.status_code == 400
        assert res.json()["message"] == "Cannot send message to yourself"

    def test_anonymity_check_precedes_self_check(self):
        a = make_user("alice", allow_anonymous_messages=False)
        # 익명 거부가 자기 자신 검사보다 먼저
        assert self._send(a, user=a, is_anonymous=True).status_code == 403

    def test_blocked_caller_token_treated_as_anonymous(self):
        a = make_user("alice", status=UserStatus.BLOCKED)
        b = make_user("bob")
        res = self._send(b, user=a, is_anonymous=False)
        assert res.status_code == 201
        assert Message.objects.get().sender_id is None

    def test_content_validation(self):
        b = make_user("bob")
        assert self._send(b, content="").status_code == 400
        res = self._send(b, content="x" * 501)
        assert res.status_code == 400
        assert "content" in res.json()["errors"]

    def test_notifier_failure_does_not_fail_send(self, monkeypatch, django_capture_on_commit_callbacks):
        from notifications import services as notif_services

        class _BrokenTask:
            @staticmethod
            def delay(*args, **kwargs):
                raise RuntimeError("broker down")

        monkeypatch.setattr(notif_services, "notify_new_message", _BrokenTask)
        b = make_user("bob")
        with django_capture_on_commit_callbacks(execute=True):
            res = self._send(b)
        assert res.status_code == 201
        assert Message.objects.count() == 1


@pytest.mark.django_db
class TestRecipientOperations:
    @pytest.fixture(autouse=True)
    def _setup(self):
        self.client = APIClient()
        self.alice = make_user("alice")
        self.bob = make_user("bob")
        self.msg = Message.objects.create(recipient=self.bob, content="hello")

    def _as(self, user):
        self.client.force_authenticate(user)

    def test_mark_read_is_idempotent(self):
        self._as(self.bob)
        for _ in range(2):
            assert self.client.put(f"{BASE}/{self.msg.id}/read").status_code == 200
        self.msg.refresh_from_db()
        assert self.msg.is_read is True

    def test_other_users_cannot_touch_message(self):
        self._as(self.alice)
        assert self.client.put(f"{BASE}/{self.msg.id}/read").status_code == 404
        assert self.client.post(f"{BASE}/{self.msg.id}/reply", {"content": "x"}, format="json").status_code == 404
        assert self.client.delete(f"{BASE}/{self.msg.id}").status_code == 404
        assert Message.objects.filter(id=self.msg.id).exists()

    def test_reply_is_write_once(self):
        self._as(self.bob)
        first = self.client.post(f"{BASE}/{self.msg.id}/reply", {"content": "thanks", "is_public": True}, format="json")
        assert first.status_code == 201
        assert first.json()["data"]["reply"]["content"] == "thanks"

        second = self.client.post(f"{BASE}/{self.msg.id}/reply", {"content": "again"}, format="json")
        assert second.status_code == 409

        self.msg.refresh_from_db()
        assert self.msg.reply_content == "thanks"
        assert self.msg.reply_is_public is True
        assert self.msg.is_read is True

    def test_reply_validation(self):
        self._as(self.bob)
        res = self.client.post(f"{BASE}/{self.msg.id}/reply", {"content": "x" * 501}, format="json")
        assert res.status_code == 400

    def test_delete(self):
        self._as(self.bob)
        assert self.client.delete(f"{BASE}/{self.msg.id}").status_code == 200
        assert not Message.objects.exists()
        assert self.client.delete(f"{BASE}/{self.msg.id}").status_code == 404

    def test_inbox_pagination_newest_first(self):
        for i in range(4):
            Message.objects.create(recipient=self.bob, content=f"m{i}", is_read=i % 2 == 0)
        self._as(self.bob)

        page1 = self.client.get(f"{BASE}/inbox", {"page": 1, "limit": 2}).json()["data"]
        page3 = self.client.get(f"{BASE}/inbox", {"page": 3, "limit": 2}).json()["data"]
        assert [m["content"] for m in page1["messages"]] == ["m3", "m2"]
        assert [m["content"] for m in page3["messages"]] == ["hello"]
        assert page1["pagination"] == {"current": 1, "total": 3, "count": 2}
        assert page1["unread_count"] == 3

    def test_inbox_limit_is_capped_and_validated(self):
        self._as(self.bob)
        assert self.client.get(f"{BASE}/inbox", {"limit": 1000}).status_code == 200
        assert self.client.get(f"{BASE}/inbox", {"page": 0}).status_code == 400
        assert self.client.get(f"{BASE}/inbox", {"limit": "abc"}).status_code == 400

    def test_inbox_page_past_the_end_is_empty(self):
        self._as(self.bob)
        data = self.client.get(f"{BASE}/inbox", {"page": 5, "limit": 2}).json()["data"]
        assert data["messages"] == []
        assert data["pagination"] == {"current": 5, "total": 1, "count": 0}

    def test_malformed_message_id_is_not_routed(self):
        self._as(self.bob)
        assert self.client.put(f"{BASE}/{'-' * 36}/read").status_code == 404
        assert self.client.post(f"{BASE}/{'-' * 36}/reply", {"content": "x"}, format="json").status_code == 404
        assert self.client.get(f"{BASE}/user/{'-' * 36}").status_code == 404

    def test_inbox_requires_authentication(self):
        assert self.client.get(f"{BASE}/inbox").status_code == 401

    def test_stats(self):
        Message.objects.create(recipient=self.bob, content="a", is_read=True, reply_content="r", reply_is_public=True)
        Message.objects.create(recipient=self.bob, content="b", is_read=True, reply_content="r", reply_is_public=False)
        self._as(self.bob)
        data = self.client.get(f"{BASE}/stats").json()["data"]
        assert data == {"total_received": 3, "unread_count": 1, "total_replied": 2, "public_replies": 1}


@pytest.mark.django_db
class TestFeedAndPublicReplies:
    @pytest.fixture(autouse=True)
    def _setup(self):
        self.client = APIClient()

    def test_reply_then_follow_shows_in_feed(self):
        a, b = make_user("alice"), make_user("bob")
        self.client.force_authenticate(a)
        self.client.post(BASE, {"recipient_id": str(b.id), "content": "hello"}, format="json")
        msg = Message.objects.get()

        self.client.force_authenticate(b)
        self.client.post(f"{BASE}/{msg.id}/reply", {"content": "hi back", "is_public": True}, format="json")

        self.client.force_authenticate(a)
        assert self.client.get(f"{BASE}/feed").json()["data"]["feed"] == []

        assert self.client.post(f"/api/v1/users/{b.id}/follow").status_code == 201
        feed = self.client.get(f"{BASE}/feed").json()["data"]["feed"]
        assert len(feed) == 1
        assert feed[0]["id"] == str(msg.id)
        assert feed[0]["reply"]["content"] == "hi back"
        assert feed[0]["recipient"]["username"] == "bob"
        assert feed[0]["sender"] is None

    def test_feed_includes_own_and_excludes_private_replies(self):
        a, b = make_user("alice"), make_user("bob")
        Follow.objects.create(follower=a, following=b)
        own = Message.objects.create(recipient=a, content="to me")
        Message.objects.filter(id=own.id).update(reply_content="mine", reply_is_public=True, reply_created_at="2026-01-02T00:00:00Z")
        private = Message.objects.create(recipient=b, content="secret")
        Message.objects.filter(id=private.id).update(reply_content="psst", reply_is_public=False, reply_created_at="2026-01-03T00:00:00Z")
        public = Message.objects.create(recipient=b, content="open")
        Message.objects.filter(id=public.id).update(reply_content="hey", reply_is_public=True, reply_created_at="2026-01-04T00:00:00Z")

        self.client.force_authenticate(a)
        ids = [item["id"] for item in self.client.get(f"{BASE}/feed").json()["data"]["feed"]]
        assert ids == [str(public.id), str(own.id)]

    def test_user_public_replies_anonymous_viewer(self):
        b = make_user("bob")
        m = Message.objects.create(recipient=b, content="q")
        Message.objects.filter(id=m.id).update(reply_content="a", reply_is_public=True, reply_created_at="2026-01-01T00:00:00Z")
        Message.objects.create(recipient=b, content="unanswered")

        res = self.client.get(f"{BASE}/user/{b.id}")
        assert res.status_code == 200
        data = res.json()["data"]
        assert [x["id"] for x in data["messages"]] == [str(m.id)]
        assert data["user"]["username"] == "bob"

    def test_user_public_replies_blocked_and_missing(self):
        a, b = make_user("alice"), make_user("bob")
        Block.objects.create(blocker=a, blocked=b)

        self.client.force_authenticate(a)
        assert self.client.get(f"{BASE}/user/{b.id}").status_code == 403
        self.client.force_authenticate(b)
        assert self.client.get(f"{BASE}/user/{a.id}").status_code == 403
        assert self.client.get(f"{BASE}/user/{uuid.uuid4()}").status_code == 404
