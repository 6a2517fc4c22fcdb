import logging

from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

log = logging.getLogger(__name__)


class OptionalJWTAuthentication(JWTAuthentication):
    """
    토큰이 없거나 유효하지 않으면 익명 호출로 처리한다.
    (익명 메시지 전송, 공개 프로필/검색 등 로그인 없이도 열려 있는 엔드포인트용)
    """

    def authenticate(self, request):
        try:
            return super().authenticate(request)
        except (InvalidToken, TokenError, AuthenticationFailed) as e:
            log.debug("Ignoring invalid credential on optional-auth endpoint: %s", e)
            return None
