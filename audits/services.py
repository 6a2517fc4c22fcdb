from typing import Mapping, Optional, Union

from .models import AuditAction, AuditLog
from .utils import request_fingerprint


def write_audit_log(
    *,
    action: Union[str, AuditAction],
    user,
    target_type: str = "",
    target_id=None,
    request=None,
    extra: Optional[Mapping] = None,
    ip_hash: Optional[str] = None,
    ua_hash: Optional[str] = None,
) -> AuditLog:
    """
    감사 로그 표준 기록 함수.
    - request 가 있으면 IP/UA 를 해시해 기본값으로 쓰고, 요청 경로를 ``extra.endpoint`` 에 남긴다.
    - ip_hash/ua_hash 를 명시하면 그 값이 우선.
    """
    req_ip_hash, req_ua_hash = request_fingerprint(request)
    payload = dict(extra or {})
    if request is not None:
        payload.setdefault("endpoint", f"{request.method} {request.path}")

    return AuditLog.objects.create(
        user=user,
        action=str(action),
        target_type=target_type or "",
        target_id=target_id,
        ip_hash=ip_hash if ip_hash is not None else req_ip_hash,
        ua_hash=ua_hash if ua_hash is not None else req_ua_hash,
        extra=payload,
    )
