import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from common.exceptions import Conflict, InvalidOperation
from notifications.services import schedule_new_message_notification
from relations.models import Follow
from relations.services import is_blocked_either_way

from .models import Message

log = logging.getLogger(__name__)
User = get_user_model()

PUBLIC_REPLY = Q(reply_content__isnull=False, reply_is_public=True)


@transaction.atomic
def send_message(*, caller, recipient_id, content: str, image: str = "", is_anonymous: bool = True) -> Message:
    """
    검사 순서:
      1) 수신자 없음/비활성 → NotFound
      2) 익명인데 수신자가 익명 메시지 거부 → Forbidden
      3) 인증 발신자와 상호 차단 → Forbidden
      4) 인증 발신자가 자기 자신에게 → InvalidOperation
    비로그인 호출자는 요청 값과 무관하게 항상 익명.
    """
    anonymous = is_anonymous or caller is None

    recipient = User.objects.active().filter(id=recipient_id).first()
    if recipient is None:
        raise NotFound("Recipient not found")
    if anonymous and not recipient.allow_anonymous_messages:
        raise PermissionDenied("This user doesn't accept anonymous messages")
    if caller is not None:
        if is_blocked_either_way(caller.id, recipient.id):
            raise PermissionDenied("Cannot send message to this user")
        if caller.id == recipient.id:
            raise InvalidOperation("Cannot send message to yourself")

    message = Message.objects.create(
        recipient=recipient,
        sender=None if anonymous else caller,
        content=content,
        image=image or "",
        is_anonymous=anonymous,
    )
    schedule_new_message_notification(message)
    log.info("Message %s sent to %s (anonymous=%s)", message.id, recipient.id, anonymous)
    return message


def _owned(recipient, message_id) -> Message:
    message = Message.objects.filter(id=message_id, recipient=recipient).first()
    if message is None:
        raise NotFound("Message not found")
    return message


def mark_read(*, recipient, message_id) -> Message:
    message = _owned(recipient, message_id)
    if not message.is_read:
        Message.objects.filter(id=message.id).update(is_read=True)
        message.is_read = True
    return message


@transaction.atomic
def reply(*, recipient, message_id, content: str, is_public: bool = False) -> Message:
    message = _owned(recipient, message_id)
    # 조건부 UPDATE: 동시 답장 중 하나만 성공
    updated = Message.objects.filter(id=message.id, reply_content__isnull=True).update(
        reply_content=content,
        reply_is_public=is_public,
        reply_created_at=timezone.now(),
        is_read=True,
    )
    if updated == 0:
        raise Conflict("Message already replied")
    message.refresh_from_db()
    return message


def delete_message(*, recipient, message_id) -> None:
    deleted, _ = Message.objects.filter(id=message_id, recipient=recipient).delete()
    if deleted == 0:
        raise NotFound("Message not found")


def admin_delete_message(message_id) -> Message:
    message = Message.objects.filter(id=message_id).first()
    if message is None:
        raise NotFound("Message not found")
    Message.objects.filter(id=message.id).delete()
    return message


# ---- reads ----
def inbox(recipient):
    """(queryset, unread_count). 최신순 ``-created_at, -id``."""
    qs = Message.objects.filter(recipient=recipient).select_related("sender").order_by("-created_at", "-id")
    unread = Message.objects.filter(recipient=recipient, is_read=False).count()
    return qs, unread


def feed(viewer):
    following_ids = Follow.objects.filter(follower=viewer).values("following_id")
    return (
        Message.objects.filter(PUBLIC_REPLY)
        .filter(Q(recipient_id__in=following_ids) | Q(recipient=viewer))
        .select_related("sender", "recipient")
        .order_by("-reply_created_at", "-id")
    )


def user_public_replies(*, viewer: Optional[object], user_id):
    user = User.objects.active().filter(id=user_id).first()
    if user is None:
        raise NotFound("User not found")
    if viewer is not None and is_blocked_either_way(viewer.id, user.id):
        raise PermissionDenied("You cannot view this user's replies")
    qs = Message.objects.filter(PUBLIC_REPLY, recipient=user).select_related("sender").order_by("-reply_created_at", "-id")
    return user, qs


def stats(recipient) -> dict:
    return Message.objects.filter(recipient=recipient).aggregate(
        total_received=Count("id"),
        unread_count=Count("id", filter=Q(is_read=False)),
        total_replied=Count("id", filter=Q(reply_content__isnull=False)),
        public_replies=Count("id", filter=PUBLIC_REPLY),
    )
