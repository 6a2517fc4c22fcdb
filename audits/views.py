import uuid

from django.db.models import QuerySet
from django.utils.dateparse import parse_datetime
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse, OpenApiTypes
from rest_framework import serializers, viewsets
from rest_framework.exceptions import ValidationError

from common.pagination import PageLimitPagination
from common.schema import ErrorOut, envelope_of
from users.permissions import IsActiveAdmin

from .models import AuditAction, AuditLog
from .serializers import AuditLogOut


def _parse_uuid(name: str, raw: str):
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise ValidationError({name: "Invalid UUID."})


def _parse_dt(name: str, raw: str):
    dt = parse_datetime(raw)
    if dt is None:
        raise ValidationError({name: "Invalid ISO8601 datetime."})
    return dt


class AuditLogViewSet(viewsets.GenericViewSet):
    """
    /api/v1/admin/audits  (관리자 전용)
    필터: action, target_type, target_id, user_id, since(ISO8601), until(ISO8601)
    """

    permission_classes = [IsActiveAdmin]
    serializer_class = AuditLogOut
    pagination_class = PageLimitPagination

    def get_queryset(self) -> QuerySet:
        qs = AuditLog.objects.all().order_by("-created_at", "-id")
        params = self.request.query_params

        if params.get("action"):
            qs = qs.filter(action=params["action"])
        if params.get("target_type"):
            qs = qs.filter(target_type=params["target_type"])
        if params.get("target_id"):
            qs = qs.filter(target_id=_parse_uuid("target_id", params["target_id"]))
        if params.get("user_id"):
            qs = qs.filter(user_id=_parse_uuid("user_id", params["user_id"]))
        if params.get("since"):
            qs = qs.filter(created_at__gte=_parse_dt("since", params["since"]))
        if params.get("until"):
            qs = qs.filter(created_at__lte=_parse_dt("until", params["until"]))
        return qs

    @extend_schema(
        tags=["Admin"],
        summary="감사 로그 조회",
        description=(
            "관리자 행위(상태 변경, 신고 검토, 메시지 삭제)와 신고 접수, 로그인/로그아웃 기록을 최신순으로 조회합니다.\n\n"
            "- **날짜 형식**: ISO8601 (예: `2025-09-15T08:30:00Z`)"
        ),
        operation_id="admin_audits_list",
        parameters=[
            OpenApiParameter(name="action", type=OpenApiTypes.STR, required=False, enum=[c[0] for c in AuditAction.choices]),
            OpenApiParameter(name="target_type", type=OpenApiTypes.STR, required=False, description='"user" | "message" | "report"'),
            OpenApiParameter(name="target_id", type=OpenApiTypes.UUID, required=False),
            OpenApiParameter(name="user_id", type=OpenApiTypes.UUID, required=False, description="행위자 ID"),
            OpenApiParameter(name="since", type=OpenApiTypes.DATETIME, required=False),
            OpenApiParameter(name="until", type=OpenApiTypes.DATETIME, required=False),
            OpenApiParameter(name="page", type=OpenApiTypes.INT, required=False),
            OpenApiParameter(name="limit", type=OpenApiTypes.INT, required=False),
        ],
        responses={
            200: OpenApiResponse(response=envelope_of("AuditLogsEnvelope", serializers.DictField(help_text="{logs: AuditLog[], pagination}"))),
            400: OpenApiResponse(response=ErrorOut),
            401: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
        },
    )
    def list(self, request):
        page = self.paginate_queryset(self.get_queryset())
        return self.paginator.get_paginated_response(AuditLogOut(page, many=True).data, key="logs", message="Audit logs retrieved")
