from drf_spectacular.utils import OpenApiExample, OpenApiParameter, OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import serializers, viewsets
from rest_framework.decorators import action

from audits.models import AuditAction
from audits.services import write_audit_log
from common.pagination import PageLimitPagination
from common.responses import envelope
from common.routing import UUID_LOOKUP
from common.schema import ErrorOut, OkOut, StatusChangeOut, envelope_of
from messaging.services import admin_delete_message
from reports.models import ReportStatus, ReportType
from users.models import UserStatus
from users.permissions import IsActiveAdmin
from users.services import change_user_status

from . import services
from .serializers import (
    AdminDeleteIn,
    AdminMessageOut,
    AdminReportOut,
    AdminUserListOut,
    ReviewIn,
    ReviewOut,
    StatusChangeIn,
    UserDetailOut,
)

_PAGING = [
    OpenApiParameter(name="page", type=OpenApiTypes.INT, required=False),
    OpenApiParameter(name="limit", type=OpenApiTypes.INT, required=False, description="최대 100"),
]
_ADMIN_ERRORS = {401: OpenApiResponse(response=ErrorOut), 403: OpenApiResponse(response=ErrorOut, description="관리자 아님")}


def _path_id(description: str) -> OpenApiParameter:
    return OpenApiParameter(name="pk", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description=description)


class AdminStatsViewSet(viewsets.ViewSet):
    """/api/v1/admin/stats"""

    permission_classes = [IsActiveAdmin]
    serializer_class = serializers.Serializer

    @extend_schema(
        tags=["Admin"],
        summary="관리자 대시보드 통계",
        description="전체 현황(overview), 최근 24시간/7일 집계(recent), 최근 7일 일별 추이(daily_stats, 오래된 날짜부터)를 반환합니다.",
        operation_id="admin_stats",
        responses={200: OpenApiResponse(response=envelope_of("AdminStatsEnvelope", serializers.DictField(help_text="{overview, recent, daily_stats[]}"))), **_ADMIN_ERRORS},
    )
    def list(self, request):
        return envelope("Statistics retrieved", services.dashboard_stats())


class AdminUserViewSet(viewsets.GenericViewSet):
    """
    /api/v1/admin/users               GET
    /api/v1/admin/users/{id}          GET
    /api/v1/admin/users/{id}/status   PUT
    """

    permission_classes = [IsActiveAdmin]
    lookup_value_regex = UUID_LOOKUP
    serializer_class = serializers.Serializer
    pagination_class = PageLimitPagination

    @extend_schema(
        tags=["Admin"],
        summary="사용자 목록",
        description="사용자별 통계(받은/보낸 메시지, 팔로워/팔로잉, 피신고 수)를 포함합니다. `search` 는 username/email/이름 부분 일치.",
        operation_id="admin_users_list",
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, required=False, enum=UserStatus.values),
            OpenApiParameter(name="search", type=OpenApiTypes.STR, required=False),
            *_PAGING,
        ],
        responses={200: OpenApiResponse(response=envelope_of("AdminUsersEnvelope", serializers.DictField(help_text="{users: AdminUser[], pagination}"))), **_ADMIN_ERRORS},
    )
    def list(self, request):
        page = self.paginate_queryset(services.list_users(status=request.query_params.get("status"), search=request.query_params.get("search")))
        return self.paginator.get_paginated_response(AdminUserListOut(page, many=True).data, key="users", message="Users retrieved")

    @extend_schema(
        tags=["Admin"],
        summary="사용자 상세",
        operation_id="admin_users_detail",
        parameters=[_path_id("사용자 ID (UUID)")],
        responses={200: OpenApiResponse(response=envelope_of("AdminUserDetailEnvelope", UserDetailOut())), 404: OpenApiResponse(response=ErrorOut), **_ADMIN_ERRORS},
    )
    def retrieve(self, request, pk=None):
        return envelope("User details retrieved", UserDetailOut(services.user_detail(pk)).data)

    @extend_schema(
        tags=["Admin"],
        summary="사용자 상태 변경",
        description="active / blocked / banned. 자기 자신(400)과 관리자 계정(403)은 변경할 수 없습니다. 메시지와 관계는 그대로 유지됩니다.",
        operation_id="admin_users_status",
        parameters=[_path_id("사용자 ID (UUID)")],
        request=StatusChangeIn,
        responses={
            200: OpenApiResponse(response=envelope_of("StatusChangeEnvelope", StatusChangeOut)),
            400: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
            **_ADMIN_ERRORS,
        },
        examples=[OpenApiExample("요청 예시", value={"status": "banned", "reason": "spam"}, request_only=True)],
    )
    @action(detail=True, methods=["put"], url_path="status")
    def change_status(self, request, pk=None):
        ser = StatusChangeIn(data=request.data)
        ser.is_valid(raise_exception=True)
        change = change_user_status(actor=request.user, target_id=pk, new_status=ser.validated_data["status"], reason=ser.validated_data.get("reason"))

        write_audit_log(
            action=AuditAction.CHANGE_USER_STATUS,
            user=request.user,
            target_type="user",
            target_id=pk,
            request=request,
            extra={"previous_status": change.previous_status, "new_status": change.new_status, "reason": change.reason},
        )
        return envelope(f"User status updated to {change.new_status}", change.as_dict())


class AdminReportViewSet(viewsets.GenericViewSet):
    """
    /api/v1/admin/reports              GET  (기본 status=pending)
    /api/v1/admin/reports/{id}/review  PUT
    """

    permission_classes = [IsActiveAdmin]
    lookup_value_regex = UUID_LOOKUP
    serializer_class = serializers.Serializer
    pagination_class = PageLimitPagination

    @extend_schema(
        tags=["Admin"],
        summary="신고 목록",
        operation_id="admin_reports_list",
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, required=False, enum=ReportStatus.values, description="기본값 pending"),
            OpenApiParameter(name="type", type=OpenApiTypes.STR, required=False, enum=ReportType.values),
            *_PAGING,
        ],
        responses={200: OpenApiResponse(response=envelope_of("AdminReportsEnvelope", serializers.DictField(help_text="{reports: AdminReport[], pagination}"))), **_ADMIN_ERRORS},
    )
    def list(self, request):
        page = self.paginate_queryset(services.list_reports(status=request.query_params.get("status", ReportStatus.PENDING), type=request.query_params.get("type")))
        return self.paginator.get_paginated_response(AdminReportOut(page, many=True).data, key="reports", message="Reports retrieved")

    @extend_schema(
        tags=["Admin"],
        summary="신고 검토",
        description=(
            "pending 상태의 신고만 검토할 수 있습니다 (재검토 시 409).\n\n"
            "- `action.type`: `delete_message` | `block_user` | `ban_user` (선택)\n"
            "- 조치는 검토 커밋 이후 best-effort 로 실행되며, 대상이 없으면 아무 일도 하지 않습니다."
        ),
        operation_id="admin_reports_review",
        parameters=[_path_id("신고 ID (UUID)")],
        request=ReviewIn,
        responses={
            200: OpenApiResponse(response=envelope_of("ReviewEnvelope", ReviewOut())),
            400: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
            409: OpenApiResponse(response=ErrorOut, description="이미 검토된 신고"),
            **_ADMIN_ERRORS,
        },
        examples=[OpenApiExample("요청 예시", value={"status": "resolved", "admin_notes": "confirmed", "action": {"type": "ban_user"}}, request_only=True)],
    )
    @action(detail=True, methods=["put"])
    def review(self, request, pk=None):
        ser = ReviewIn(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        action_type = (data.get("action") or {}).get("type")
        outcome = services.review_report(admin=request.user, report_id=pk, status=data["status"], admin_notes=data["admin_notes"], action=action_type)

        write_audit_log(
            action=AuditAction.REVIEW_REPORT,
            user=request.user,
            target_type="report",
            target_id=pk,
            request=request,
            extra={"status": data["status"], "action": action_type, "action_applied": outcome.applied},
        )
        out = ReviewOut({"report": outcome.report, "action": outcome.action, "action_applied": outcome.applied})
        return envelope("Report reviewed successfully", out.data)


class AdminMessageViewSet(viewsets.GenericViewSet):
    """
    /api/v1/admin/messages       GET
    /api/v1/admin/messages/{id}  DELETE
    """

    permission_classes = [IsActiveAdmin]
    lookup_value_regex = UUID_LOOKUP
    serializer_class = serializers.Serializer
    pagination_class = PageLimitPagination

    @extend_schema(
        tags=["Admin"],
        summary="전체 메시지 조회",
        operation_id="admin_messages_list",
        parameters=[OpenApiParameter(name="search", type=OpenApiTypes.STR, required=False, description="본문 부분 일치"), *_PAGING],
        responses={200: OpenApiResponse(response=envelope_of("AdminMessagesEnvelope", serializers.DictField(help_text="{messages: AdminMessage[], pagination}"))), **_ADMIN_ERRORS},
    )
    def list(self, request):
        page = self.paginate_queryset(services.list_messages(search=request.query_params.get("search")))
        return self.paginator.get_paginated_response(AdminMessageOut(page, many=True).data, key="messages", message="Messages retrieved")

    @extend_schema(
        tags=["Admin"],
        summary="메시지 삭제 (관리자)",
        operation_id="admin_messages_delete",
        parameters=[_path_id("메시지 ID (UUID)")],
        request=AdminDeleteIn,
        responses={200: OpenApiResponse(response=OkOut), 404: OpenApiResponse(response=ErrorOut), **_ADMIN_ERRORS},
    )
    def destroy(self, request, pk=None):
        ser = AdminDeleteIn(data=request.data)
        ser.is_valid(raise_exception=True)
        message = admin_delete_message(pk)

        write_audit_log(
            action=AuditAction.DELETE_MESSAGE,
            user=request.user,
            target_type="message",
            target_id=pk,
            request=request,
            extra={"recipient_id": str(message.recipient_id), "reason": ser.validated_data.get("reason")},
        )
        return envelope("Message deleted successfully")
