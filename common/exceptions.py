import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.fields import get_error_detail
from rest_framework.response import Response
from rest_framework.views import exception_handler

log = logging.getLogger(__name__)


class InvalidOperation(exceptions.APIException):
    # 자기 자신 대상 등 요청 자체가 성립하지 않는 경우
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid operation."
    default_code = "invalid_operation"


class Conflict(exceptions.APIException):
    # 유니크 제약 / 상태 전이 위반 (중복 팔로우, 이미 답장된 메시지, 이미 처리된 신고 등)
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"


def _first_message(detail) -> str:
    if isinstance(detail, dict):
        if "detail" in detail:
            return _first_message(detail["detail"])
        return "Validation failed."
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else "Validation failed."
    return str(detail)


def envelope_exception_handler(exc, context):
    """
    모든 오류를 ``{"success": false, "message": ..., "errors"?: ...}`` 형태로 통일.
    - APIException 계열: DRF 기본 status code 유지
    - Django ValidationError: 400
    - 그 외 예외: 500, 내부 정보는 로그에만 남긴다
    """
    if isinstance(exc, Http404):
        exc = exceptions.NotFound(_first_message(exc.args[0]) if exc.args else None)
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()
    elif isinstance(exc, DjangoValidationError):
        # ORM 단계의 값 검증 실패 (잘못된 UUID 등)
        exc = exceptions.ValidationError(detail=get_error_detail(exc))

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        log.exception("Unhandled error in %s", view.__class__.__name__ if view else "unknown view", exc_info=exc)
        return Response({"success": False, "message": "Internal server error."}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    body = {"success": False, "message": _first_message(exc.detail)}
    if isinstance(exc, exceptions.ValidationError) and isinstance(exc.detail, dict) and set(exc.detail) != {"detail"}:
        body["errors"] = exc.detail
    response.data = body
    return response
