from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter, OpenApiResponse, OpenApiTypes
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotAuthenticated, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from audits.models import AuditAction
from audits.signals import audit_event
from audits.utils import client_ip
from common.pagination import PageLimitPagination
from common.responses import envelope
from common.schema import ErrorOut, OkOut, TokenRefreshOut, envelope_of

from . import services
from .authentication import OptionalJWTAuthentication
from .models import User
from .permissions import AllowAnyCaller, IsActiveUser, resolve_caller
from .serializers import (
    LoginIn,
    LogoutIn,
    MeOut,
    ProfileUpdateIn,
    PublicProfileOut,
    RegisterIn,
    SettingsIn,
    TokenPairOut,
    UserLookupOut,
)


def _audit(request, action, user_id, **extra):
    audit_event.send(
        sender=AuthViewSet,
        action=action,
        user_id=user_id,
        target_type="user",
        target_id=user_id,
        ip=client_ip(request),
        ua=request.META.get("HTTP_USER_AGENT"),
        extra=extra,
    )


class AuthViewSet(viewsets.GenericViewSet):
    """
    /api/v1/auth/register | login | refresh | logout | me
    """

    queryset = User.objects.all()
    permission_classes = [AllowAny]
    throttle_scope = "auth"

    def get_serializer_class(self):
        if self.action == "register":
            return RegisterIn
        if self.action == "login":
            return LoginIn
        if self.action == "refresh":
            return TokenRefreshSerializer
        if self.action == "logout":
            return LogoutIn
        return MeOut

    @extend_schema(
        tags=["Auth"],
        summary="회원가입",
        description="핸들/이메일/비밀번호/이름으로 계정을 만들고 JWT 쌍을 발급합니다. `message_link` 는 핸들의 소문자형으로 고정됩니다.",
        operation_id="auth_register",
        request=RegisterIn,
        responses={
            201: OpenApiResponse(response=envelope_of("RegisterOut", TokenPairOut()), description="생성된 사용자와 JWT"),
            400: OpenApiResponse(response=ErrorOut, description="형식 오류, 약한 비밀번호, 예약된 핸들"),
            409: OpenApiResponse(response=ErrorOut, description="핸들 또는 이메일 중복"),
        },
        examples=[
            OpenApiExample(
                "요청 예시",
                value={"username": "night_owl", "email": "owl@example.com", "password": "s3cret-pass", "first_name": "Night", "last_name": "Owl"},
                request_only=True,
            )
        ],
    )
    @action(detail=False, methods=["post"])
    def register(self, request):
        s = RegisterIn(data=request.data)
        s.is_valid(raise_exception=True)
        user = services.register_user(**s.validated_data)
        return envelope("User registered successfully", TokenPairOut.build(user), status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Auth"],
        summary="로그인(JWT 발급)",
        operation_id="auth_login",
        request=LoginIn,
        responses={
            200: OpenApiResponse(response=envelope_of("LoginOut", TokenPairOut())),
            400: OpenApiResponse(response=ErrorOut),
            401: OpenApiResponse(response=ErrorOut, description="이메일 또는 비밀번호 불일치"),
            403: OpenApiResponse(response=ErrorOut, description="차단/정지된 계정"),
        },
        examples=[OpenApiExample("요청 예시", value={"email": "owl@example.com", "password": "s3cret-pass"}, request_only=True)],
    )
    @action(detail=False, methods=["post"])
    def login(self, request):
        s = LoginIn(data=request.data)
        s.is_valid(raise_exception=True)
        user = services.login_user(request=request, **s.validated_data)
        _audit(request, AuditAction.LOGIN, user.id)
        return envelope("Login successful", TokenPairOut.build(user))

    @extend_schema(
        tags=["Auth"],
        summary="액세스 토큰 재발급",
        operation_id="auth_refresh",
        request=TokenRefreshSerializer,
        responses={200: OpenApiResponse(response=envelope_of("RefreshOut", TokenRefreshOut)), 401: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["post"])
    def refresh(self, request):
        s = TokenRefreshSerializer(data=request.data)
        try:
            s.is_valid(raise_exception=True)
        except TokenError as e:
            raise InvalidToken(e.args[0])
        return envelope("Token refreshed", s.validated_data)

    @extend_schema(
        tags=["Auth"],
        summary="로그아웃(토큰 블랙리스트)",
        description=(
            "- `all_logout=true`이면 **현재 인증 사용자**의 모든 refresh 토큰을 블랙리스트 처리합니다(`Authorization` 필요).\n"
            "- 그렇지 않으면 body의 `refresh` 토큰만 블랙리스트 처리합니다."
        ),
        operation_id="auth_logout",
        request=LogoutIn,
        responses={200: OpenApiResponse(response=OkOut), 400: OpenApiResponse(response=ErrorOut), 401: OpenApiResponse(response=ErrorOut)},
        examples=[
            OpenApiExample("모든 기기에서 로그아웃", value={"all_logout": True}, request_only=True),
            OpenApiExample("해당 refresh만 무효화", value={"refresh": "eyJhbGciOi..."}, request_only=True),
        ],
    )
    @action(detail=False, methods=["post"])
    def logout(self, request):
        s = LogoutIn(data=request.data)
        s.is_valid(raise_exception=True)

        if s.validated_data.get("all_logout", False):
            if not request.user or not request.user.is_authenticated:
                raise NotAuthenticated()
            for t in OutstandingToken.objects.filter(user=request.user):
                BlacklistedToken.objects.get_or_create(token=t)
            _audit(request, AuditAction.LOGOUT, request.user.id, all_sessions=True)
            return envelope("Logged out from all sessions")

        try:
            token = RefreshToken(s.validated_data["refresh"])
            token.blacklist()
        except TokenError as e:
            raise ValidationError({"refresh": str(e)})
        _audit(request, AuditAction.LOGOUT, token.get("user_id"))
        return envelope("Logged out")

    @extend_schema(
        tags=["Auth"],
        summary="내 정보",
        operation_id="auth_me",
        responses={200: OpenApiResponse(response=envelope_of("MeEnvelope", MeOut())), 401: OpenApiResponse(response=ErrorOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], permission_classes=[IsActiveUser])
    def me(self, request):
        return envelope("Profile retrieved", MeOut(request.user).data)


class UserViewSet(viewsets.GenericViewSet):
    """
    /api/v1/users/profile (PUT), /users/settings (PUT), /users/search (GET), /users/{identifier} (GET)

    조회/검색은 선택적 인증: 토큰이 없거나 무효, 또는 비활성 계정이면 익명 호출자로 본다.
    """

    queryset = User.objects.all()
    authentication_classes = [OptionalJWTAuthentication]
    permission_classes = [AllowAnyCaller]
    lookup_field = "identifier"
    lookup_value_regex = r"[A-Za-z0-9_]+"
    serializer_class = serializers.Serializer
    pagination_class = PageLimitPagination

    @extend_schema(
        tags=["Users"],
        summary="공개 프로필 조회",
        description="핸들 또는 메시지 링크로 활성 사용자의 공개 프로필을 조회합니다. 상호 차단 관계라면 403.",
        operation_id="users_lookup",
        parameters=[OpenApiParameter(name="identifier", location=OpenApiParameter.PATH, type=OpenApiTypes.STR, description="username 또는 message_link")],
        responses={
            200: OpenApiResponse(response=envelope_of("UserLookupEnvelope", UserLookupOut())),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
        },
    )
    def retrieve(self, request, identifier=None):
        data = services.lookup_public_profile(identifier=identifier, viewer=resolve_caller(request))
        return envelope("User retrieved", UserLookupOut(data).data)

    @extend_schema(
        tags=["Users"],
        summary="사용자 검색",
        description="핸들/이름 부분 일치(대소문자 무시). 본인과 상호 차단 관계 사용자는 제외됩니다.",
        operation_id="users_search",
        parameters=[
            OpenApiParameter(name="q", type=OpenApiTypes.STR, required=True, description="검색어 (2자 이상)"),
            OpenApiParameter(name="page", type=OpenApiTypes.INT, required=False),
            OpenApiParameter(name="limit", type=OpenApiTypes.INT, required=False, description="최대 100"),
        ],
        responses={
            200: OpenApiResponse(
                response=envelope_of(
                    "UserSearchEnvelope",
                    serializers.DictField(help_text="{users: PublicProfile[], pagination}"),
                )
            ),
            400: OpenApiResponse(response=ErrorOut),
        },
    )
    @action(detail=False, methods=["get"])
    def search(self, request):
        page = self.paginate_queryset(services.search_users(query=request.query_params.get("q", ""), viewer=resolve_caller(request)))
        return self.paginator.get_paginated_response(PublicProfileOut(page, many=True).data, key="users", message="Users found")

    @extend_schema(
        tags=["Users"],
        summary="프로필 수정",
        operation_id="users_profile_update",
        request=ProfileUpdateIn,
        responses={200: OpenApiResponse(response=envelope_of("ProfileEnvelope", MeOut())), 400: OpenApiResponse(response=ErrorOut), 401: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["put"], authentication_classes=[JWTAuthentication], permission_classes=[IsActiveUser])
    def profile(self, request):
        s = ProfileUpdateIn(data=request.data)
        s.is_valid(raise_exception=True)
        user = services.update_profile(request.user, **s.validated_data)
        return envelope("Profile updated successfully", MeOut(user).data)

    @extend_schema(
        tags=["Users"],
        summary="설정 변경",
        description="익명 메시지 수신 여부와 이메일 알림 여부를 변경합니다.",
        operation_id="users_settings_update",
        request=SettingsIn,
        responses={200: OpenApiResponse(response=envelope_of("SettingsEnvelope", SettingsIn())), 400: OpenApiResponse(response=ErrorOut), 401: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["put"], url_path="settings", authentication_classes=[JWTAuthentication], permission_classes=[IsActiveUser])
    def update_settings(self, request):
        s = SettingsIn(data=request.data)
        s.is_valid(raise_exception=True)
        user = services.update_settings(request.user, **s.validated_data)
        return envelope(
            "Settings updated successfully",
            {"allow_anonymous_messages": user.allow_anonymous_messages, "email_notifications": user.email_notifications},
        )
