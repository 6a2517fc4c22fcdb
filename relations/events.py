import logging
from typing import Any, Dict

from django.conf import settings
from django.dispatch import Signal
from django.utils.module_loading import import_string

log = logging.getLogger(__name__)

# ---- Domain signals ----
user_followed = Signal()  # kwargs: follower_id, following_id
user_unfollowed = Signal()  # kwargs: follower_id, following_id
user_blocked = Signal()  # kwargs: blocker_id, blocked_id
user_unblocked = Signal()  # kwargs: blocker_id, blocked_id

_SIGNALS = {
    "UserFollowed": user_followed,
    "UserUnfollowed": user_unfollowed,
    "UserBlocked": user_blocked,
    "UserUnblocked": user_unblocked,
}


def logging_emitter(event: str, payload: Dict[str, Any]) -> None:
    log.info("EVENT %s %s", event, payload)


def celery_emitter(event: str, payload: Dict[str, Any]) -> None:
    from .tasks import publish_relation_event

    publish_relation_event.delay(event, payload)


def _get_emitter():
    # RELATIONS_EVENT_EMITTER = "relations.events.celery_emitter" 등 dotted path
    path = getattr(settings, "RELATIONS_EVENT_EMITTER", None)
    if not path:
        return logging_emitter
    try:
        return import_string(path)
    except ImportError:
        log.exception("Failed to import relation emitter '%s'; falling back to logging.", path)
        return logging_emitter


def emit(event: str, payload: Dict[str, Any]) -> None:
    sig = _SIGNALS.get(event)
    if sig:
        sig.send(sender="relations", **payload)

    # 외부 emitter 실패는 관계 변경을 되돌리지 않는다
    try:
        _get_emitter()(event, payload)
    except Exception:
        log.exception("Relation emitter failed for %s", event)


def emit_user_followed(follower_id, following_id):
    emit("UserFollowed", {"follower_id": str(follower_id), "following_id": str(following_id)})


def emit_user_unfollowed(follower_id, following_id):
    emit("UserUnfollowed", {"follower_id": str(follower_id), "following_id": str(following_id)})


def emit_user_blocked(blocker_id, blocked_id):
    emit("UserBlocked", {"blocker_id": str(blocker_id), "blocked_id": str(blocked_id)})


def emit_user_unblocked(blocker_id, blocked_id):
    emit("UserUnblocked", {"blocker_id": str(blocker_id), "blocked_id": str(blocked_id)})
