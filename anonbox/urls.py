"""
URL configuration for anonbox project.

Every app registers its routers under ``/api/v1/``; OpenAPI schema and docs live under ``/api/``.
"""

from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView


urlpatterns = [
    path("api/v1/", include("users.urls")),
    path("api/v1/", include("relations.urls")),
    path("api/v1/", include("messaging.urls")),
    path("api/v1/", include("reports.urls")),
    path("api/v1/", include("moderation.urls")),
    path("api/v1/", include("audits.urls")),
    path("api/v1/", include("notifications.urls")),
    # OpenAPI schema & docs
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
]
