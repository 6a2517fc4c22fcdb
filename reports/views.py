from drf_spectacular.utils import OpenApiExample, OpenApiParameter, OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action

from audits.models import AuditAction
from audits.services import write_audit_log
from common.responses import envelope
from common.routing import UUID_LOOKUP
from common.schema import ErrorOut, envelope_of

from . import services
from .serializers import MessageReportIn, ReportOut


class MessageReportViewSet(viewsets.ViewSet):
    """/api/v1/messages/{pk}/report (POST)"""

    lookup_value_regex = UUID_LOOKUP
    serializer_class = serializers.Serializer

    @extend_schema(
        tags=["Reports"],
        summary="메시지 신고",
        description="메시지를 신고합니다. 같은 메시지는 사용자당 한 번만 신고할 수 있습니다. 익명 메시지는 신고 대상 사용자가 비어 있습니다.",
        operation_id="messages_report",
        parameters=[OpenApiParameter(name="pk", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description="메시지 ID (UUID)")],
        request=MessageReportIn,
        responses={
            201: OpenApiResponse(response=envelope_of("ReportEnvelope", ReportOut()), description="접수된 신고"),
            400: OpenApiResponse(response=ErrorOut),
            401: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
            409: OpenApiResponse(response=ErrorOut, description="이미 신고한 메시지"),
        },
        examples=[OpenApiExample("요청 예시", value={"type": "harassment", "description": "threatening language"}, request_only=True)],
    )
    @action(detail=True, methods=["post"])
    def report(self, request, pk=None):
        ser = MessageReportIn(data=request.data)
        ser.is_valid(raise_exception=True)
        report = services.create_message_report(reporter=request.user, message_id=pk, **ser.validated_data)

        write_audit_log(
            action=AuditAction.REPORT_MESSAGE,
            user=request.user,
            target_type="message",
            target_id=pk,
            request=request,
            extra={"report_id": str(report.id), "type": report.type},
        )
        return envelope("Report submitted successfully", ReportOut(report).data, status=status.HTTP_201_CREATED)
