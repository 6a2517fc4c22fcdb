from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission

from .models import UserStatus

INACTIVE_ACCOUNT_MESSAGE = "Account is blocked or banned"


def _is_authenticated(request) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated)


def _ensure_active(user):
    # 어떤 API든 비즈니스 로직 전에 상태를 재확인 (인증 자체는 JWT가 담당)
    if getattr(user, "status", UserStatus.ACTIVE) != UserStatus.ACTIVE:
        raise PermissionDenied(INACTIVE_ACCOUNT_MESSAGE)


class IsActiveUser(BasePermission):
    def has_permission(self, request, view):
        if not _is_authenticated(request):
            return False
        _ensure_active(request.user)
        return True


class IsActiveAdmin(IsActiveUser):
    message = "Admin access required"

    def has_permission(self, request, view):
        return super().has_permission(request, view) and bool(getattr(request.user, "is_admin", False))


class AllowAnyCaller(BasePermission):
    """
    선택적 인증 엔드포인트용. 인증된 호출자라도 active가 아니면 익명으로 취급하므로
    여기서는 거부하지 않는다. 호출자 해석은 ``resolve_caller`` 사용.
    """

    def has_permission(self, request, view):
        return True


def resolve_caller(request):
    """Return the active authenticated user or ``None`` for anonymous callers."""
    if not _is_authenticated(request):
        return None
    if request.user.status != UserStatus.ACTIVE:
        return None
    return request.user
