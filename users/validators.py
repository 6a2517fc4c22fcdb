import re
import unicodedata

from django.conf import settings
from django.core.cache import cache
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

RESERVED_HANDLES_CACHE_KEY = "filter:reserved_handles"
RESERVED_HANDLES_TTL = 300

HANDLE_MIN = 3
HANDLE_MAX = 20
HANDLE_REGEX = re.compile(r"^[A-Za-z0-9_]{3,20}$")


def _cache_key():
    ver = getattr(settings, "RESERVED_HANDLES_VERSION", "v1")
    return f"{RESERVED_HANDLES_CACHE_KEY}:{ver}"


def normalize_handle(handle: str) -> str:
    return unicodedata.normalize("NFKC", handle).strip()


class HandlePolicyValidator:
    message = _("Username must be between 3 and 20 characters long and can only contain English letters, numbers and underscores.")

    def __call__(self, value: str):
        v = normalize_handle(value)
        if not (HANDLE_MIN <= len(v) <= HANDLE_MAX):
            raise serializers.ValidationError(self.message)
        if not HANDLE_REGEX.match(v):
            raise serializers.ValidationError(self.message)
        return v


class ReservedHandleService:
    @staticmethod
    def load() -> set[str]:
        words = cache.get(_cache_key())
        if words is None:
            words = getattr(settings, "RESERVED_HANDLES", ["admin", "moderator", "support"])
            cache.set(_cache_key(), list(words), RESERVED_HANDLES_TTL)
        return {w.strip().lower() for w in words}


class ReservedHandleValidator:
    # message_link 이 username 에서 파생되므로 예약어는 완전 일치만 막는다
    message = _("This username is reserved.")

    def __call__(self, value: str):
        v = normalize_handle(value).lower()
        if v in ReservedHandleService.load():
            raise serializers.ValidationError(self.message)
        return v
