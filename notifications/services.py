import logging

from django.db import transaction

from .tasks import notify_new_message

log = logging.getLogger(__name__)

ANONYMOUS_SENDER = "Someone"


def _dispatch(recipient_id: str, message_id: str, sender_display: str) -> None:
    try:
        notify_new_message.delay(recipient_id, message_id, sender_display)
    except Exception:
        # fire-and-forget: 알림 실패가 전송을 실패시키지 않는다
        log.exception("Failed to dispatch new-message notification (recipient=%s, message=%s)", recipient_id, message_id)


def schedule_new_message_notification(message) -> None:
    """커밋 이후에 알림 태스크를 띄운다. 롤백된 메시지는 알리지 않는다."""
    sender_display = ANONYMOUS_SENDER if message.is_anonymous or message.sender is None else message.sender.display_name
    recipient_id, message_id = str(message.recipient_id), str(message.id)
    transaction.on_commit(lambda: _dispatch(recipient_id, message_id, sender_display))
