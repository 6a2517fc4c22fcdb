from django.urls import path

from .views import AuditLogViewSet

urlpatterns = [
    path("admin/audits", AuditLogViewSet.as_view({"get": "list"}), name="admin-audits"),
]
