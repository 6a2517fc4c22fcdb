import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from django.urls import reverse
from rest_framework.exceptions import ValidationError
from rest_framework.request import Request
from rest_framework.test import APIClient, APIRequestFactory

from common.exceptions import envelope_exception_handler
from common.pagination import PageLimitPagination
from messaging.models import Message
from users.models import User


def make_user(name, **extra):
    return User.objects.create_user(name, f"{name}@example.com", "pw-123456", **extra)


def _request(**params):
    return Request(APIRequestFactory().get("/", params))


@pytest.mark.django_db
class TestPageLimitPagination:
    @pytest.fixture(autouse=True)
    def _setup(self):
        bob = make_user("bob")
        for i in range(5):
            Message.objects.create(recipient=bob, content=f"m{i}")
        self.qs = Message.objects.order_by("content")

    def test_defaults_and_meta(self):
        p = PageLimitPagination()
        page = p.paginate_queryset(self.qs, _request())
        assert [m.content for m in page] == ["m0", "m1", "m2", "m3", "m4"]
        assert p.get_pagination_meta() == {"current": 1, "total": 1, "count": 5}

    def test_limit_is_capped(self):
        p = PageLimitPagination()
        assert p.get_page_size(_request(limit=1000)) == 100

    def test_out_of_range_page_is_empty(self):
        p = PageLimitPagination()
        assert p.paginate_queryset(self.qs, _request(page=4, limit=2)) == []
        assert p.get_pagination_meta() == {"current": 4, "total": 3, "count": 0}

    def test_empty_queryset_has_no_pages(self):
        p = PageLimitPagination()
        assert p.paginate_queryset(self.qs.none(), _request()) == []
        assert p.get_pagination_meta() == {"current": 1, "total": 0, "count": 0}

    @pytest.mark.parametrize("params", [{"page": 0}, {"page": "x"}, {"limit": 0}, {"limit": "abc"}])
    def test_invalid_params_rejected(self, params):
        with pytest.raises(ValidationError):
            PageLimitPagination().paginate_queryset(self.qs, _request(**params))

    def test_paginated_response_envelope(self):
        p = PageLimitPagination()
        page = p.paginate_queryset(self.qs, _request(page=2, limit=2))
        res = p.get_paginated_response([m.content for m in page], key="messages", message="Inbox retrieved", unread_count=5)
        assert res.data == {
            "success": True,
            "message": "Inbox retrieved",
            "data": {"messages": ["m2", "m3"], "unread_count": 5, "pagination": {"current": 2, "total": 3, "count": 2}},
        }


class TestEnvelopeExceptionHandler:
    def test_django_validation_error_is_400(self):
        res = envelope_exception_handler(DjangoValidationError("“abc” is not a valid UUID."), {})
        assert res.status_code == 400
        assert res.data == {"success": False, "message": "“abc” is not a valid UUID."}

    def test_django_validation_error_dict_keeps_fields(self):
        res = envelope_exception_handler(DjangoValidationError({"id": ["Invalid value."]}), {})
        assert res.status_code == 400
        assert res.data["message"] == "Validation failed."
        assert res.data["errors"] == {"id": ["Invalid value."]}

    def test_unexpected_error_is_500(self):
        res = envelope_exception_handler(RuntimeError("boom"), {})
        assert res.status_code == 500
        assert res.data == {"success": False, "message": "Internal server error."}


@pytest.mark.django_db
class TestMiddlewareStack:
    def test_unauthenticated_request_reaches_view(self):
        make_user("alice")
        res = APIClient().get("/api/v1/users/search", {"q": "al"})
        assert res.status_code == 200
        assert [u["username"] for u in res.json()["data"]["users"]] == ["alice"]

    def test_client_can_drop_forced_user(self):
        client = APIClient()
        client.force_authenticate(make_user("alice"))
        assert client.get(reverse("auth-me")).status_code == 200
        client.force_authenticate(None)
        assert client.get(reverse("auth-me")).status_code == 401
