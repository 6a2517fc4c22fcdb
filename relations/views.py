from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter, OpenApiResponse, OpenApiTypes
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action

from common.pagination import PageLimitPagination
from common.responses import envelope
from common.routing import UUID_LOOKUP
from common.schema import ErrorOut, OkOut, envelope_of
from users.serializers import PublicProfileOut

from .serializers import BlockedUserOut, BlockIn
from .services import RelationshipService

_TARGET = OpenApiParameter(name="pk", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description="대상 사용자 ID (UUID)")
_PAGING = [
    OpenApiParameter(name="page", type=OpenApiTypes.INT, required=False),
    OpenApiParameter(name="limit", type=OpenApiTypes.INT, required=False, description="최대 100"),
]


class UserRelationViewSet(viewsets.GenericViewSet):
    """
    /api/v1/users/{pk}/follow (POST)    /api/v1/users/{pk}/unfollow (DELETE)
    /api/v1/users/{pk}/block  (POST)    /api/v1/users/{pk}/unblock  (DELETE)
    /api/v1/users/my/followers | my/following | my/blocked (GET)
    """

    lookup_value_regex = UUID_LOOKUP
    serializer_class = serializers.Serializer
    pagination_class = PageLimitPagination

    @extend_schema(
        tags=["Relations"],
        summary="사용자 팔로우",
        operation_id="users_follow",
        parameters=[_TARGET],
        request=None,
        responses={
            201: OpenApiResponse(response=OkOut, description="팔로우 성공"),
            400: OpenApiResponse(response=ErrorOut, description="자기 자신 팔로우"),
            403: OpenApiResponse(response=ErrorOut, description="차단 관계"),
            404: OpenApiResponse(response=ErrorOut, description="대상 사용자가 없거나 비활성"),
            409: OpenApiResponse(response=ErrorOut, description="이미 팔로우 중"),
        },
        examples=[OpenApiExample("예시", value=None, request_only=True, description="POST /api/v1/users/{id}/follow")],
    )
    @action(detail=True, methods=["post"])
    def follow(self, request, pk=None):
        RelationshipService.follow(request.user, pk)
        return envelope("User followed successfully", status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Relations"],
        summary="사용자 언팔로우",
        operation_id="users_unfollow",
        parameters=[_TARGET],
        request=None,
        responses={200: OpenApiResponse(response=OkOut), 401: OpenApiResponse(response=ErrorOut), 404: OpenApiResponse(response=ErrorOut, description="팔로우 관계 없음")},
    )
    @action(detail=True, methods=["delete"])
    def unfollow(self, request, pk=None):
        RelationshipService.unfollow(request.user, pk)
        return envelope("User unfollowed successfully")

    @extend_schema(
        tags=["Relations"],
        summary="사용자 차단",
        description="차단과 동시에 양방향 팔로우 관계가 모두 해제됩니다.",
        operation_id="users_block",
        parameters=[_TARGET],
        request=BlockIn,
        responses={
            201: OpenApiResponse(response=OkOut, description="차단 성공"),
            400: OpenApiResponse(response=ErrorOut, description="자기 자신 차단"),
            404: OpenApiResponse(response=ErrorOut),
            409: OpenApiResponse(response=ErrorOut, description="이미 차단됨"),
        },
        examples=[OpenApiExample("예시", value={"reason": "spam"}, request_only=True)],
    )
    @action(detail=True, methods=["post"])
    def block(self, request, pk=None):
        s = BlockIn(data=request.data or {})
        s.is_valid(raise_exception=True)
        RelationshipService.block(request.user, pk, reason=s.validated_data.get("reason", ""))
        return envelope("User blocked successfully", status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Relations"],
        summary="사용자 차단 해제",
        operation_id="users_unblock",
        parameters=[_TARGET],
        request=None,
        responses={200: OpenApiResponse(response=OkOut), 401: OpenApiResponse(response=ErrorOut), 404: OpenApiResponse(response=ErrorOut, description="차단 관계 없음")},
    )
    @action(detail=True, methods=["delete"])
    def unblock(self, request, pk=None):
        RelationshipService.unblock(request.user, pk)
        return envelope("User unblocked successfully")

    @extend_schema(
        tags=["Relations"],
        summary="내 팔로워 목록",
        operation_id="users_my_followers",
        parameters=_PAGING,
        responses={200: OpenApiResponse(response=envelope_of("FollowersEnvelope", serializers.DictField(help_text="{followers: PublicProfile[], pagination}")))},
    )
    @action(detail=False, methods=["get"], url_path="my/followers")
    def my_followers(self, request):
        edges = self.paginate_queryset(RelationshipService.followers_of(request.user))
        users = [e.follower for e in edges]
        return self.paginator.get_paginated_response(PublicProfileOut(users, many=True).data, key="followers", message="Followers retrieved")

    @extend_schema(
        tags=["Relations"],
        summary="내 팔로잉 목록",
        operation_id="users_my_following",
        parameters=_PAGING,
        responses={200: OpenApiResponse(response=envelope_of("FollowingEnvelope", serializers.DictField(help_text="{following: PublicProfile[], pagination}")))},
    )
    @action(detail=False, methods=["get"], url_path="my/following")
    def my_following(self, request):
        edges = self.paginate_queryset(RelationshipService.following_of(request.user))
        users = [e.following for e in edges]
        return self.paginator.get_paginated_response(PublicProfileOut(users, many=True).data, key="following", message="Following retrieved")

    @extend_schema(
        tags=["Relations"],
        summary="내 차단 목록",
        operation_id="users_my_blocked",
        responses={200: OpenApiResponse(response=envelope_of("BlockedEnvelope", BlockedUserOut(many=True)))},
    )
    @action(detail=False, methods=["get"], url_path="my/blocked")
    def my_blocked(self, request):
        blocks = RelationshipService.blocked_by(request.user)
        return envelope("Blocked users retrieved", BlockedUserOut(blocks, many=True).data)
