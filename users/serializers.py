from django.contrib.auth import password_validation
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User
from .validators import HandlePolicyValidator, ReservedHandleValidator, normalize_handle


class PublicProfileOut(serializers.ModelSerializer):
    # 공개 프로젝션: 자격증명/이메일/상태는 절대 포함하지 않는다
    class Meta:
        model = User
        fields = ("id", "username", "first_name", "last_name", "bio", "avatar", "message_link", "created_at")
        read_only_fields = fields


class MeOut(serializers.ModelSerializer):
    settings = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ("id", "username", "email", "first_name", "last_name", "bio", "avatar", "message_link", "is_admin", "status", "settings", "created_at", "last_login")
        read_only_fields = fields

    def get_settings(self, obj):
        return {"allow_anonymous_messages": obj.allow_anonymous_messages, "email_notifications": obj.email_notifications}


class RegisterIn(serializers.Serializer):
    username = serializers.CharField(max_length=20, validators=[HandlePolicyValidator(), ReservedHandleValidator()])
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6, max_length=128)
    first_name = serializers.CharField(min_length=1, max_length=50)
    last_name = serializers.CharField(min_length=1, max_length=50)

    def validate_username(self, value: str) -> str:
        return normalize_handle(value)

    def validate_email(self, value: str) -> str:
        return value.strip().lower()

    def validate(self, attrs):
        candidate = User(username=attrs["username"], email=attrs["email"], first_name=attrs["first_name"], last_name=attrs["last_name"])
        password_validation.validate_password(attrs["password"], user=candidate)
        return attrs


class LoginIn(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate_email(self, value: str) -> str:
        return value.strip().lower()


class TokenPairOut(serializers.Serializer):
    access = serializers.CharField(read_only=True)
    refresh = serializers.CharField(read_only=True)
    user = PublicProfileOut(read_only=True)

    @staticmethod
    def build(user: User) -> dict:
        refresh = RefreshToken.for_user(user)
        return {"access": str(refresh.access_token), "refresh": str(refresh), "user": PublicProfileOut(user).data}


class LogoutIn(serializers.Serializer):
    all_logout = serializers.BooleanField(required=False, default=False)
    refresh = serializers.CharField(required=False, allow_blank=False)

    def validate(self, attrs):
        all_flag = attrs.get("all_logout", False)
        refresh = attrs.get("refresh")
        if not all_flag and not refresh:
            raise serializers.ValidationError({"refresh": "This field is required when all_logout is false."})
        return attrs


class ProfileUpdateIn(serializers.Serializer):
    first_name = serializers.CharField(required=False, min_length=1, max_length=50)
    last_name = serializers.CharField(required=False, min_length=1, max_length=50)
    bio = serializers.CharField(required=False, allow_blank=True, max_length=200)
    avatar = serializers.CharField(required=False, allow_blank=True)


class SettingsIn(serializers.Serializer):
    allow_anonymous_messages = serializers.BooleanField(required=False)
    email_notifications = serializers.BooleanField(required=False)


class UserLookupOut(serializers.Serializer):
    user = PublicProfileOut()
    followers_count = serializers.IntegerField()
    following_count = serializers.IntegerField()
    is_following = serializers.BooleanField()
    can_send_message = serializers.BooleanField()
