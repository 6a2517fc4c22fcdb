import hashlib
import hmac
from typing import Optional, Tuple

from django.conf import settings


def _key() -> bytes:
    # AUDIT_HASH_SALT 가 비어 있으면 SECRET_KEY
    return (getattr(settings, "AUDIT_HASH_SALT", "") or settings.SECRET_KEY).encode("utf-8")


def salted_digest(value: Optional[str]) -> Optional[str]:
    """IP/UA 평문 대신 저장하는 HMAC-SHA256 hex. 빈 값은 None."""
    if not value:
        return None
    return hmac.new(_key(), value.encode("utf-8"), hashlib.sha256).hexdigest()


def client_ip(request) -> Optional[str]:
    if request is None:
        return None
    if getattr(settings, "AUDIT_TRUST_FORWARDED_FOR", False):
        forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.META.get("REMOTE_ADDR")


def request_fingerprint(request) -> Tuple[Optional[str], Optional[str]]:
    """(ip_hash, ua_hash)"""
    if request is None:
        return None, None
    return salted_digest(client_ip(request)), salted_digest(request.META.get("HTTP_USER_AGENT"))
