import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from users.models import User, UserStatus


@pytest.mark.django_db
class TestAuthEndpoints:
    def setup_method(self):
        self.client = APIClient()
        self.register_url = reverse("auth-register")
        self.login_url = reverse("auth-login")
        self.refresh_url = reverse("auth-refresh")
        self.logout_url = reverse("auth-logout")
        self.me_url = reverse("auth-me")

    def _register(self, username="night_owl", email="owl@example.com", password="s3cret-pass!", **extra):
        payload = {"username": username, "email": email, "password": password, "first_name": "Night", "last_name": "Owl", **extra}
        return self.client.post(self.register_url, data=payload, format="json")

    def _login(self, email="owl@example.com", password="s3cret-pass!"):
        return self.client.post(self.login_url, data={"email": email, "password": password}, format="json")

    # Register
    def test_register_returns_tokens_and_public_user(self):
        res = self._register()
        assert res.status_code == status.HTTP_201_CREATED

        body = res.json()
        assert body["success"] is True
        data = body["data"]
        assert "access" in data and "refresh" in data
        assert data["user"]["username"] == "night_owl"
        assert data["user"]["message_link"] == "night_owl"
        assert "email" not in data["user"] and "password" not in data["user"]

        user = User.objects.get(username="night_owl")
        assert user.password.startswith("argon2")
        assert user.status == UserStatus.ACTIVE

    def test_message_link_is_lowercased_handle(self):
        res = self._register(username="Night_Owl")
        assert res.status_code == 201
        assert res.json()["data"]["user"]["message_link"] == "night_owl"

    def test_register_duplicate_email_and_handle_conflict(self):
        assert self._register().status_code == 201

        dup_email = self._register(username="other_owl")
        assert dup_email.status_code == status.HTTP_409_CONFLICT
        assert dup_email.json()["success"] is False

        # 대소문자만 다른 핸들은 message_link 충돌
        dup_handle = self._register(username="NIGHT_OWL", email="other@example.com")
        assert dup_handle.status_code == status.HTTP_409_CONFLICT

    @pytest.mark.parametrize("username", ["ab", "has space", "way_too_long_handle_123", "dash-name"])
    def test_register_rejects_malformed_handle(self, username):
        res = self._register(username=username)
        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert "username" in body["errors"]

    def test_register_rejects_reserved_handle(self):
        res = self._register(username="Admin")
        assert res.status_code == 400
        assert "reserved" in str(res.json()["errors"]["username"])

    @pytest.mark.parametrize("username", ["search", "Profile", "settings"])
    def test_register_rejects_route_names(self, username):
        # /users/{identifier} 조회가 목록 라우트에 가려지는 핸들
        res = self._register(username=username)
        assert res.status_code == 400
        assert "username" in res.json()["errors"]
        assert not User.objects.exists()

    def test_register_rejects_weak_password(self):
        res = self._register(password="123456")
        assert res.status_code == 400
        assert res.json()["success"] is False
        assert not User.objects.exists()

    # Login
    def test_login_success_updates_last_login(self):
        self._register()
        res = self._login()
        assert res.status_code == status.HTTP_200_OK
        data = res.json()["data"]
        assert "access" in data and "refresh" in data
        assert User.objects.get(username="night_owl").last_login is not None

    def test_login_wrong_password_401(self):
        self._register()
        res = self._login(password="WRONG-pass")
        assert res.status_code == status.HTTP_401_UNAUTHORIZED
        assert res.json() == {"success": False, "message": "Invalid email or password"}

    def test_login_unknown_email_401(self):
        assert self._login(email="ghost@example.com").status_code == 401

    @pytest.mark.parametrize("state", [UserStatus.BLOCKED, UserStatus.BANNED])
    def test_login_non_active_403(self, state):
        self._register()
        User.objects.filter(username="night_owl").update(status=state)
        res = self._login()
        assert res.status_code == status.HTTP_403_FORBIDDEN
        assert res.json()["message"] == "Account is blocked or banned"

    # Refresh / logout
    def test_refresh_success(self):
        tokens = self._register().json()["data"]
        res = self.client.post(self.refresh_url, data={"refresh": tokens["refresh"]}, format="json")
        assert res.status_code == 200
        assert "access" in res.json()["data"]

    def test_refresh_with_blacklisted_token_401(self):
        tokens = self._register().json()["data"]
        RefreshToken(tokens["refresh"]).blacklist()
        res = self.client.post(self.refresh_url, data={"refresh": tokens["refresh"]}, format="json")
        assert res.status_code == status.HTTP_401_UNAUTHORIZED
        assert res.json()["success"] is False

    def test_logout_blacklists_refresh(self):
        tokens = self._register().json()["data"]
        assert self.client.post(self.logout_url, data={"refresh": tokens["refresh"]}, format="json").status_code == 200
        res = self.client.post(self.refresh_url, data={"refresh": tokens["refresh"]}, format="json")
        assert res.status_code == 401

    def test_logout_all_requires_authentication(self):
        res = self.client.post(self.logout_url, data={"all_logout": True}, format="json")
        assert res.status_code == 401

    def test_logout_all_blacklists_every_session(self):
        first = self._register().json()["data"]
        second = self._login().json()["data"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {second['access']}")
        assert self.client.post(self.logout_url, data={"all_logout": True}, format="json").status_code == 200

        self.client.credentials()
        for t in (first["refresh"], second["refresh"]):
            assert self.client.post(self.refresh_url, data={"refresh": t}, format="json").status_code == 401

    # Me
    def test_me_with_bearer_token(self):
        tokens = self._register().json()["data"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        res = self.client.get(self.me_url)
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["email"] == "owl@example.com"
        assert data["settings"] == {"allow_anonymous_messages": True, "email_notifications": True}

    def test_me_blocked_user_forbidden(self):
        tokens = self._register().json()["data"]
        User.objects.filter(username="night_owl").update(status=UserStatus.BLOCKED)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        res = self.client.get(self.me_url)
        assert res.status_code == 403
        assert res.json()["message"] == "Account is blocked or banned"

    def test_me_anonymous_401(self):
        assert self.client.get(self.me_url).status_code == 401


@pytest.mark.django_db
class TestCreateAdminCommand:
    def test_creates_admin_from_settings(self, settings):
        settings.DEFAULT_ADMIN_EMAIL = "root@example.com"
        settings.DEFAULT_ADMIN_PASSWORD = "Admin@123456"
        call_command("create_admin")

        admin = User.objects.get(email="root@example.com")
        assert admin.is_admin is True
        assert admin.username == "admin"
        assert admin.check_password("Admin@123456")

    def test_fails_when_email_exists(self, settings):
        settings.DEFAULT_ADMIN_EMAIL = "root@example.com"
        settings.DEFAULT_ADMIN_PASSWORD = "Admin@123456"
        call_command("create_admin")
        with pytest.raises(CommandError):
            call_command("create_admin")

    def test_fails_without_password(self, settings):
        settings.DEFAULT_ADMIN_PASSWORD = ""
        with pytest.raises(CommandError):
            call_command("create_admin")
