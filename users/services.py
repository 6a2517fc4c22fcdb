import logging
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.db.models.functions import Lower
from rest_framework.exceptions import AuthenticationFailed, NotFound, PermissionDenied, ValidationError

from common.exceptions import Conflict, InvalidOperation

from .models import User, UserStatus
from .permissions import INACTIVE_ACCOUNT_MESSAGE

log = logging.getLogger(__name__)

SEARCH_MIN_LENGTH = 2


@dataclass(frozen=True)
class StatusChange:
    user_id: str
    previous_status: str
    new_status: str
    reason: Optional[str] = None

    def as_dict(self) -> dict:
        return {"user_id": self.user_id, "previous_status": self.previous_status, "new_status": self.new_status, "reason": self.reason}


@transaction.atomic
def register_user(*, username: str, email: str, password: str, first_name: str, last_name: str) -> User:
    if User.objects.filter(email=email).exists():
        raise Conflict("Email already registered")
    # message_link 는 username.lower() 이므로 대소문자만 다른 핸들도 충돌로 본다
    if User.objects.filter(Q(username__iexact=username) | Q(message_link=username.lower())).exists():
        raise Conflict("Username already taken")
    try:
        with transaction.atomic():
            user = User.objects.create_user(username=username, email=email, password=password, first_name=first_name, last_name=last_name)
    except IntegrityError:
        raise Conflict("Username or email already taken")
    log.info("User registered: %s", user.id)
    return user


def login_user(*, request, email: str, password: str) -> User:
    candidate = User.objects.filter(email=email).only("username").first()
    user = authenticate(request, username=candidate.username, password=password) if candidate else None
    if user is None:
        raise AuthenticationFailed("Invalid email or password")
    if user.status != UserStatus.ACTIVE:
        raise PermissionDenied(INACTIVE_ACCOUNT_MESSAGE)
    update_last_login(None, user)
    return user


def update_profile(user: User, **fields) -> User:
    for k, v in fields.items():
        setattr(user, k, v)
    if fields:
        user.save(update_fields=list(fields))
    return user


def update_settings(user: User, *, allow_anonymous_messages: Optional[bool] = None, email_notifications: Optional[bool] = None) -> User:
    changed = []
    if allow_anonymous_messages is not None:
        user.allow_anonymous_messages = allow_anonymous_messages
        changed.append("allow_anonymous_messages")
    if email_notifications is not None:
        user.email_notifications = email_notifications
        changed.append("email_notifications")
    if changed:
        user.save(update_fields=changed)
    return user


def lookup_public_profile(*, identifier: str, viewer: Optional[User]) -> dict:
    from relations.models import Follow
    from relations.services import is_blocked_either_way

    user = User.objects.active().filter(Q(username=identifier) | Q(message_link=identifier.lower())).first()
    if user is None:
        raise NotFound("User not found")
    if viewer is not None and is_blocked_either_way(viewer.id, user.id):
        raise PermissionDenied("You cannot view this user")

    return {
        "user": user,
        "followers_count": Follow.objects.filter(following=user).count(),
        "following_count": Follow.objects.filter(follower=user).count(),
        "is_following": bool(viewer) and Follow.objects.filter(follower=viewer, following=user).exists(),
        "can_send_message": user.allow_anonymous_messages or viewer is not None,
    }


def search_users(*, query: str, viewer: Optional[User]):
    from relations.models import Block

    q = (query or "").strip()
    if len(q) < SEARCH_MIN_LENGTH:
        raise ValidationError({"q": f"Search query must be at least {SEARCH_MIN_LENGTH} characters"})

    qs = User.objects.active().filter(Q(username__icontains=q) | Q(first_name__icontains=q) | Q(last_name__icontains=q))
    if viewer is not None:
        blocked_ids = Block.objects.filter(blocker=viewer).values("blocked_id")
        blocker_ids = Block.objects.filter(blocked=viewer).values("blocker_id")
        qs = qs.exclude(id=viewer.id).exclude(id__in=blocked_ids).exclude(id__in=blocker_ids)
    return qs.order_by(Lower("username"), "id")


@transaction.atomic
def change_user_status(*, actor: User, target_id, new_status: str, reason: Optional[str] = None) -> StatusChange:
    """
    관리자 상태 변경 (active / blocked / banned).

    - 자기 자신의 상태는 바꿀 수 없다.
    - 관리자 계정은 어떤 행위자로부터도 보호된다 (관리자 간 강등 경로 없음).
    - 메시지/관계는 건드리지 않는다 (연쇄 효과 없음).
    """
    if not actor.is_admin:
        raise PermissionDenied("Admin access required")
    if new_status not in UserStatus.values:
        raise ValidationError({"status": "Invalid status. Must be 'active', 'blocked', or 'banned'"})

    target = User.objects.select_for_update().filter(id=target_id).first()
    if target is None:
        raise NotFound("User not found")
    if target.id == actor.id:
        raise InvalidOperation("Cannot change your own status")
    if target.is_admin:
        raise PermissionDenied("Cannot change status of admin users")

    previous = target.status
    target.status = new_status
    target.save(update_fields=["status"])
    log.info("Admin %s changed user %s status %s -> %s (reason=%s)", actor.id, target.id, previous, new_status, reason or "-")
    return StatusChange(user_id=str(target.id), previous_status=previous, new_status=new_status, reason=reason)
