import logging
import threading
from typing import Optional, Protocol

from django.conf import settings
from django.core import mail

log = logging.getLogger(__name__)


class NotifierProvider(Protocol):
    def send(self, to: str, subject: str, body: str) -> bool:
        """returns True when the provider accepted the message"""

    def close(self) -> None: ...


class ConsoleProvider:
    # 개발/테스트용: 실제 발송 없이 로그만 남긴다
    def send(self, to, subject, body):
        log.info("NOTIFY to=%s subject=%s", to, subject)
        return True

    def close(self):
        pass


class MailProvider:
    """Django EMAIL_BACKEND 위에서 하나의 연결을 재사용한다. ``close()`` 로 명시적으로 반납."""

    def __init__(self):
        self._lock = threading.Lock()
        self._connection = mail.get_connection(fail_silently=False)
        self._opened = False

    def send(self, to, subject, body):
        with self._lock:
            if not self._opened:
                self._connection.open()
                self._opened = True
            msg = mail.EmailMessage(subject=subject, body=body, from_email=settings.DEFAULT_FROM_EMAIL, to=[to], connection=self._connection)
            return msg.send() == 1

    def close(self):
        with self._lock:
            if self._opened:
                self._connection.close()
                self._opened = False


_provider: Optional[NotifierProvider] = None
_provider_lock = threading.Lock()


def _build(name: str) -> NotifierProvider:
    if name == "mail":
        return MailProvider()
    return ConsoleProvider()


def get_provider() -> NotifierProvider:
    # 최초 사용 시 생성 (NOTIFIER_PROVIDER: console | mail)
    global _provider
    with _provider_lock:
        if _provider is None:
            name = getattr(settings, "NOTIFIER_PROVIDER", "console")
            _provider = _build(name)
            log.debug("Notifier provider initialised: %s", type(_provider).__name__)
        return _provider


def close_provider() -> None:
    global _provider
    with _provider_lock:
        if _provider is not None:
            _provider.close()
            _provider = None
