from django.contrib.auth import get_user_model
from django.dispatch import Signal, receiver

from .services import write_audit_log
from .utils import salted_digest

User = get_user_model()

# 다른 앱이 audits 서비스를 직접 import 하지 않고 감사 이벤트를 남길 때 사용
# 제공 인자: action, user_id, target_type, target_id, ip, ua, extra
audit_event = Signal()


@receiver(audit_event)
def _consume_audit_event(sender, **kwargs):
    user = User.objects.filter(pk=kwargs.get("user_id")).first()
    if user is None:
        return

    write_audit_log(
        action=kwargs.get("action"),
        user=user,
        target_type=kwargs.get("target_type", ""),
        target_id=kwargs.get("target_id"),
        extra={**(kwargs.get("extra") or {}), "_via": "signal"},
        ip_hash=salted_digest(kwargs.get("ip")),
        ua_hash=salted_digest(kwargs.get("ua")),
    )
