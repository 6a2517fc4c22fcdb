from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from rest_framework.exceptions import NotFound, PermissionDenied

from common.exceptions import Conflict, InvalidOperation

from .events import emit_user_blocked, emit_user_followed, emit_user_unblocked, emit_user_unfollowed
from .models import Block, Follow

User = get_user_model()


def is_blocked_either_way(a_id, b_id) -> bool:
    """a→b 또는 b→a 차단이 하나라도 있으면 True. 메시징/팔로우/프로필/검색이 모두 이 정책만 본다."""
    if a_id is None or b_id is None:
        return False
    return Block.objects.filter(Q(blocker_id=a_id, blocked_id=b_id) | Q(blocker_id=b_id, blocked_id=a_id)).exists()


def _pair(a_id, b_id) -> Q:
    return Q(follower_id=a_id, following_id=b_id) | Q(follower_id=b_id, following_id=a_id)


@dataclass(frozen=True)
class RelationResult:
    changed: bool = True
    severed_follows: int = 0


class RelationshipService:
    """
    팔로우/언팔로우, 블록/언블록의 규칙을 한 곳에서 강제.
    - 자기 자신 대상 금지 (InvalidOperation)
    - 차단 중에는 팔로우 불가 (양방향 차단 모두)
    - 블록하면 같은 트랜잭션에서 양방향 팔로우 모두 제거
    - 유니크 제약 경합은 Conflict 로 수렴
    """

    @staticmethod
    def _validate_not_self(actor, target_id):
        if str(actor.id) == str(target_id):
            raise InvalidOperation("Cannot target yourself")

    @staticmethod
    @transaction.atomic
    def follow(actor, target_id) -> RelationResult:
        RelationshipService._validate_not_self(actor, target_id)
        target = User.objects.active().filter(id=target_id).first()
        if target is None:
            raise NotFound("User not found")
        if Follow.objects.filter(follower=actor, following=target).exists():
            raise Conflict("Already following this user")
        if is_blocked_either_way(actor.id, target.id):
            raise PermissionDenied("Cannot follow this user")
        try:
            with transaction.atomic():
                Follow.objects.create(follower=actor, following=target)
        except IntegrityError:
            raise Conflict("Already following this user")
        emit_user_followed(actor.id, target.id)
        return RelationResult()

    @staticmethod
    @transaction.atomic
    def unfollow(actor, target_id) -> RelationResult:
        deleted, _ = Follow.objects.filter(follower=actor, following_id=target_id).delete()
        if deleted == 0:
            raise NotFound("You are not following this user")
        emit_user_unfollowed(actor.id, target_id)
        return RelationResult()

    @staticmethod
    @transaction.atomic
    def block(actor, target_id, reason: str = "") -> RelationResult:
        RelationshipService._validate_not_self(actor, target_id)
        target = User.objects.filter(id=target_id).first()
        if target is None:
            raise NotFound("User not found")
        if Block.objects.filter(blocker=actor, blocked=target).exists():
            raise Conflict("User is already blocked")
        try:
            with transaction.atomic():
                Block.objects.create(blocker=actor, blocked=target, reason=reason or "")
        except IntegrityError:
            raise Conflict("User is already blocked")

        # 양방향 팔로우 모두 제거
        removed = list(Follow.objects.filter(_pair(actor.id, target.id)).values_list("follower_id", "following_id"))
        Follow.objects.filter(_pair(actor.id, target.id)).delete()
        emit_user_blocked(actor.id, target.id)
        for f_id, g_id in removed:
            emit_user_unfollowed(f_id, g_id)
        return RelationResult(severed_follows=len(removed))

    @staticmethod
    @transaction.atomic
    def unblock(actor, target_id) -> RelationResult:
        # 팔로우는 복원하지 않는다
        deleted, _ = Block.objects.filter(blocker=actor, blocked_id=target_id).delete()
        if deleted == 0:
            raise NotFound("User is not blocked")
        emit_user_unblocked(actor.id, target_id)
        return RelationResult()

    # ---- listings ----
    @staticmethod
    def followers_of(user):
        return Follow.objects.filter(following=user, follower__status="active").select_related("follower").order_by("-created_at", "-id")

    @staticmethod
    def following_of(user):
        return Follow.objects.filter(follower=user, following__status="active").select_related("following").order_by("-created_at", "-id")

    @staticmethod
    def blocked_by(user):
        return Block.objects.filter(blocker=user).select_related("blocked").order_by("-created_at", "-id")
