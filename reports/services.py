from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound

from common.exceptions import Conflict
from messaging.models import Message

from .events import publish_event
from .models import Report


@transaction.atomic
def create_message_report(*, reporter, message_id, type: str, description: str, screenshot: str = "") -> Report:
    message = Message.objects.filter(id=message_id).first()
    if message is None:
        raise NotFound("Message not found")

    if Report.objects.filter(reporter=reporter, reported_message=message).exists():
        raise Conflict("Message already reported")

    try:
        with transaction.atomic():
            report = Report.objects.create(
                reporter=reporter,
                reported_message=message,
                reported_user_id=message.sender_id,
                type=type,
                description=description,
                screenshot=screenshot or "",
            )
    except IntegrityError:
        raise Conflict("Message already reported")

    publish_event(
        "MessageReported",
        {
            "report_id": str(report.id),
            "reporter_id": str(reporter.id),
            "message_id": str(message.id),
            "reported_user_id": str(message.sender_id) if message.sender_id else None,
            "type": type,
        },
    )
    return report
