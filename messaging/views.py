from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter, OpenApiResponse, OpenApiTypes
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action

from common.pagination import PageLimitPagination
from common.responses import envelope
from common.routing import UUID_LOOKUP
from common.schema import ErrorOut, MessageStatsOut, OkOut, envelope_of
from users.authentication import OptionalJWTAuthentication
from users.permissions import AllowAnyCaller, IsActiveUser, resolve_caller
from users.serializers import PublicProfileOut

from . import services
from .serializers import FeedItemOut, MessageOut, PublicReplyOut, ReplyIn, SendMessageIn, SendMessageOut

_MESSAGE_ID = OpenApiParameter(name="pk", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description="메시지 ID (UUID)")
_PAGING = [
    OpenApiParameter(name="page", type=OpenApiTypes.INT, required=False),
    OpenApiParameter(name="limit", type=OpenApiTypes.INT, required=False, description="최대 100"),
]


class MessageViewSet(viewsets.GenericViewSet):
    """
    /api/v1/messages            POST  (선택적 인증: 비로그인 = 익명)
    /api/v1/messages/inbox      GET
    /api/v1/messages/feed       GET
    /api/v1/messages/stats      GET
    /api/v1/messages/user/{id}  GET   (선택적 인증)
    /api/v1/messages/{id}/read  PUT
    /api/v1/messages/{id}/reply POST
    /api/v1/messages/{id}       DELETE
    """

    authentication_classes = [OptionalJWTAuthentication]
    throttle_scope = "send_message"
    lookup_value_regex = UUID_LOOKUP
    serializer_class = serializers.Serializer
    pagination_class = PageLimitPagination

    def get_permissions(self):
        if self.action in ("create", "user_replies"):
            return [AllowAnyCaller()]
        return [IsActiveUser()]

    def get_throttles(self):
        if self.action == "create":
            return super().get_throttles()
        return []

    @extend_schema(
        tags=["Messages"],
        summary="메시지 보내기",
        description=(
            "로그인하지 않은 호출자는 `is_anonymous` 값과 무관하게 항상 익명입니다.\n"
            "수신자 없음(404) → 익명 거부(403) → 상호 차단(403) → 자기 자신(400) 순으로 검사합니다."
        ),
        operation_id="messages_send",
        request=SendMessageIn,
        responses={
            201: OpenApiResponse(response=envelope_of("SendMessageEnvelope", SendMessageOut())),
            400: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut, description="수신자가 없거나 비활성"),
        },
        examples=[OpenApiExample("요청 예시", value={"recipient_id": "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa", "content": "hello", "is_anonymous": True}, request_only=True)],
    )
    def create(self, request):
        s = SendMessageIn(data=request.data)
        s.is_valid(raise_exception=True)
        message = services.send_message(caller=resolve_caller(request), **s.validated_data)
        return envelope("Message sent successfully", {"message_id": str(message.id), "is_anonymous": message.is_anonymous}, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Messages"],
        summary="받은 메시지함",
        operation_id="messages_inbox",
        parameters=_PAGING,
        responses={
            200: OpenApiResponse(response=envelope_of("InboxEnvelope", serializers.DictField(help_text="{messages: Message[], unread_count, pagination}"))),
            401: OpenApiResponse(response=ErrorOut),
        },
    )
    @action(detail=False, methods=["get"])
    def inbox(self, request):
        qs, unread = services.inbox(request.user)
        page = self.paginate_queryset(qs)
        return self.paginator.get_paginated_response(MessageOut(page, many=True).data, key="messages", message="Inbox retrieved", unread_count=unread)

    @extend_schema(
        tags=["Messages"],
        summary="공개 답장 피드",
        description="내가 팔로우하는 사용자와 나 자신이 받은 메시지 중 공개 답장이 달린 것을 답장 최신순으로 보여줍니다.",
        operation_id="messages_feed",
        parameters=_PAGING,
        responses={200: OpenApiResponse(response=envelope_of("FeedEnvelope", serializers.DictField(help_text="{feed: FeedItem[], pagination}")))},
    )
    @action(detail=False, methods=["get"])
    def feed(self, request):
        page = self.paginate_queryset(services.feed(request.user))
        return self.paginator.get_paginated_response(FeedItemOut(page, many=True).data, key="feed", message="Feed retrieved")

    @extend_schema(
        tags=["Messages"],
        summary="메시지 통계",
        operation_id="messages_stats",
        responses={200: OpenApiResponse(response=envelope_of("MessageStatsEnvelope", MessageStatsOut))},
    )
    @action(detail=False, methods=["get"])
    def stats(self, request):
        return envelope("Statistics retrieved", services.stats(request.user))

    @extend_schema(
        tags=["Messages"],
        summary="사용자의 공개 답장 목록",
        operation_id="messages_user_replies",
        parameters=[OpenApiParameter(name="user_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID), *_PAGING],
        responses={
            200: OpenApiResponse(response=envelope_of("UserRepliesEnvelope", serializers.DictField(help_text="{messages: PublicReply[], user: PublicProfile, pagination}"))),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
        },
    )
    @action(detail=False, methods=["get"], url_path=r"user/(?P<user_id>" + UUID_LOOKUP + ")")
    def user_replies(self, request, user_id=None):
        user, qs = services.user_public_replies(viewer=resolve_caller(request), user_id=user_id)
        page = self.paginate_queryset(qs)
        return self.paginator.get_paginated_response(
            PublicReplyOut(page, many=True).data, key="messages", message="Messages retrieved", user=PublicProfileOut(user).data
        )

    @extend_schema(
        tags=["Messages"],
        summary="읽음 처리",
        operation_id="messages_mark_read",
        parameters=[_MESSAGE_ID],
        request=None,
        responses={200: OpenApiResponse(response=OkOut), 404: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=True, methods=["put"])
    def read(self, request, pk=None):
        services.mark_read(recipient=request.user, message_id=pk)
        return envelope("Message marked as read")

    @extend_schema(
        tags=["Messages"],
        summary="답장(1회만 가능)",
        operation_id="messages_reply",
        parameters=[_MESSAGE_ID],
        request=ReplyIn,
        responses={
            201: OpenApiResponse(response=envelope_of("ReplyEnvelope", MessageOut())),
            400: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
            409: OpenApiResponse(response=ErrorOut, description="이미 답장한 메시지"),
        },
        examples=[OpenApiExample("요청 예시", value={"content": "thanks!", "is_public": True}, request_only=True)],
    )
    @action(detail=True, methods=["post"])
    def reply(self, request, pk=None):
        s = ReplyIn(data=request.data)
        s.is_valid(raise_exception=True)
        message = services.reply(recipient=request.user, message_id=pk, **s.validated_data)
        return envelope("Reply sent successfully", MessageOut(message).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Messages"],
        summary="메시지 삭제",
        operation_id="messages_delete",
        parameters=[_MESSAGE_ID],
        responses={200: OpenApiResponse(response=OkOut), 404: OpenApiResponse(response=ErrorOut)},
    )
    def destroy(self, request, pk=None):
        services.delete_message(recipient=request.user, message_id=pk)
        return envelope("Message deleted successfully")
