import logging

from celery import shared_task
from django.contrib.auth import get_user_model

from .models import Notification
from .providers import get_provider

log = logging.getLogger(__name__)
User = get_user_model()

SUBJECT = "You have a new message"


@shared_task(name="notifications.tasks.notify_new_message", autoretry_for=(ConnectionError,), retry_backoff=2, max_retries=3)
def notify_new_message(recipient_id: str, message_id: str, sender_display: str) -> bool:
    """
    인앱 알림을 저장하고, 수신자가 이메일 알림을 켜둔 경우 메일을 보낸다.
    반환값은 메일 발송 여부.
    """
    recipient = User.objects.filter(id=recipient_id).first()
    if recipient is None:
        return False

    notification = Notification.objects.create(
        user=recipient,
        type=Notification.Type.NEW_MESSAGE,
        payload={"message_id": message_id, "sender": sender_display},
    )

    if not (recipient.email_notifications and recipient.email):
        return False

    body = f"Hi {recipient.display_name},\n\n{sender_display} sent you a new message. Open your inbox to read it."
    sent = get_provider().send(recipient.email, SUBJECT, body)
    if sent:
        Notification.objects.filter(id=notification.id).update(emailed=True)
    return sent
