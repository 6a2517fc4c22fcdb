from drf_spectacular.utils import OpenApiExample, OpenApiParameter, OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import serializers, viewsets
from rest_framework.decorators import action

from common.pagination import PageLimitPagination
from common.responses import envelope
from common.schema import ErrorOut, envelope_of
from users.permissions import IsActiveUser

from .models import Notification
from .serializers import MarkReadIn, NotificationOut


class NotificationViewSet(viewsets.GenericViewSet):
    """
    /api/v1/notifications             GET   (read=true|false)
    /api/v1/notifications/mark_read   POST
    """

    permission_classes = [IsActiveUser]
    serializer_class = NotificationOut
    pagination_class = PageLimitPagination

    def get_queryset(self):
        qs = Notification.objects.filter(user=self.request.user).order_by("-created_at", "-id")
        read = self.request.query_params.get("read")
        if read == "true":
            qs = qs.filter(is_read=True)
        elif read == "false":
            qs = qs.filter(is_read=False)
        return qs

    @extend_schema(
        tags=["Notifications"],
        summary="내 알림 목록",
        description="새 메시지 도착 등 인앱 알림을 최신순으로 반환합니다.\n- `read` 쿼리: `true` → 읽은 것만, `false` → 읽지 않은 것만, 생략 시 전체",
        operation_id="notifications_list",
        parameters=[
            OpenApiParameter(name="read", required=False, type=OpenApiTypes.STR, description="읽음 필터", enum=["true", "false"]),
            OpenApiParameter(name="page", type=OpenApiTypes.INT, required=False),
            OpenApiParameter(name="limit", type=OpenApiTypes.INT, required=False),
        ],
        responses={
            200: OpenApiResponse(response=envelope_of("NotificationsEnvelope", serializers.DictField(help_text="{notifications: Notification[], unread_count, pagination}"))),
            401: OpenApiResponse(response=ErrorOut),
        },
    )
    def list(self, request):
        page = self.paginate_queryset(self.get_queryset())
        unread = Notification.objects.filter(user=request.user, is_read=False).count()
        return self.paginator.get_paginated_response(
            NotificationOut(page, many=True).data, key="notifications", message="Notifications retrieved", unread_count=unread
        )

    @extend_schema(
        tags=["Notifications"],
        summary="알림 읽음 처리",
        description="요청한 알림 ID 목록을 읽음 처리합니다. 본인 소유의 알림만 처리됩니다.",
        operation_id="notifications_mark_read",
        request=MarkReadIn,
        responses={
            200: OpenApiResponse(response=envelope_of("MarkReadEnvelope", serializers.DictField(help_text="{updated: int}"))),
            400: OpenApiResponse(response=ErrorOut),
            401: OpenApiResponse(response=ErrorOut),
        },
        examples=[OpenApiExample("요청 예시", value={"ids": ["11111111-1111-1111-1111-111111111111"]}, request_only=True)],
    )
    @action(detail=False, methods=["post"])
    def mark_read(self, request):
        ser = MarkReadIn(data=request.data)
        ser.is_valid(raise_exception=True)
        updated = Notification.objects.filter(user=request.user, id__in=ser.validated_data["ids"]).update(is_read=True)
        return envelope("Notifications marked as read", {"updated": updated})
