import json

import pytest
import yaml
from django.urls import reverse
from rest_framework.test import APIClient


@pytest.mark.django_db
class TestOpenAPISchema:
    def setup_method(self):
        self.client = APIClient()

    def _load_schema(self, response):
        ct = (response.headers.get("Content-Type") or "").lower()
        body = response.content
        if "json" in ct or (body[:1] in (b"{", b"[")):
            return json.loads(body)
        return yaml.safe_load(body)

    def test_schema_ok(self):
        res = self.client.get(reverse("schema"))
        assert res.status_code == 200
        data = self._load_schema(res)
        assert str(data.get("openapi", "")).startswith("3.")
        assert "paths" in data and "components" in data
        schemes = (data.get("components") or {}).get("securitySchemes") or {}
        assert any(name in schemes for name in ("BearerAuth", "jwtAuth")), f"securitySchemes keys: {list(schemes.keys())}"

    def test_schema_covers_public_surface(self):
        data = self._load_schema(self.client.get(reverse("schema")))
        # ViewSet 경로 파라미터는 {pk} 로 노출될 수 있다
        paths = {p.replace("{pk}", "{id}"): item for p, item in data["paths"].items()}
        for expected in (
            "/api/v1/auth/register",
            "/api/v1/auth/login",
            "/api/v1/users/search",
            "/api/v1/users/{id}/follow",
            "/api/v1/messages",
            "/api/v1/messages/{id}/reply",
            "/api/v1/messages/{id}/report",
            "/api/v1/admin/reports/{id}/review",
            "/api/v1/admin/users/{id}/status",
            "/api/v1/admin/audits",
        ):
            assert expected in paths, sorted(paths)

        # 모든 operation 은 고유한 operationId 를 가진다
        op_ids = [op["operationId"] for item in paths.values() for method, op in item.items() if isinstance(op, dict) and "operationId" in op]
        assert len(op_ids) == len(set(op_ids))

    def test_docs_ui_ok(self):
        res = self.client.get(reverse("swagger-ui"))
        assert res.status_code == 200
        body = res.content
        assert any(marker in body for marker in (b"SwaggerUIBundle", b"swagger-ui.css", b"swagger-ui-standalone-preset")), body[:2000]

    def test_redoc_ui_ok(self):
        res = self.client.get(reverse("redoc"))
        assert res.status_code == 200
        body = res.content
        assert any(marker in body for marker in (b"redoc.standalone.js", b"Redoc", b"ReDoc")), body[:2000]
