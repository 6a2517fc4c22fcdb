import logging

from celery import shared_task

log = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, max_retries=5)
def publish_relation_event(self, event: str, payload: dict) -> None:
    # 외부 버스 연동 전까지는 워커 로그로만 남긴다
    log.info("[CELERY] relation event %s %s", event, payload)
