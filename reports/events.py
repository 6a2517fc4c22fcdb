import json
import logging

logger = logging.getLogger(__name__)


def publish_event(event_name: str, payload: dict) -> None:
    # 외부 버스 연동 지점. 현재는 구조화 로그로만 남긴다.
    try:
        logger.info("EVENT %s %s", event_name, json.dumps(payload, ensure_ascii=False, default=str))
    except (TypeError, ValueError):
        logger.exception("Failed to publish event %s", event_name)
