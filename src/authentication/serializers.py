"""Serializers for registration, login and the current-user profile."""

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

from access_control.models import GUARD_NAME, Role, RoleName
from access_control.store import RoleStore

from .managers import UserManager

User = get_user_model()

INVALID_CREDENTIALS = "Invalid credentials"


class RegisterSerializer(serializers.Serializer):
    """Self-registration. New accounts always hold the Author role and no rubrik."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    repeat_password = serializers.CharField(write_only=True, min_length=8)
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)

    def validate_email(self, value: str) -> str:
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already in use")
        return value

    def validate(self, attrs):
        if attrs["password"] != attrs.pop("repeat_password"):
            raise serializers.ValidationError({"repeat_password": "Passwords do not match"})
        return attrs

    def create(self, validated_data):
        author = Role.objects.filter(name=RoleName.AUTHOR, guard_name=GUARD_NAME).first()
        if author is None:
            raise serializers.ValidationError(f"Default role '{RoleName.AUTHOR.value}' not configured")
        return User.objects.create_user(role=author, **validated_data)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Resolve the account and check the bcrypt hash; sets ``attrs["user"]``."""
        user = User.objects.select_related("role").filter(email__iexact=attrs["email"]).first()
        if user is None or not UserManager.verify_password(user, attrs["password"]):
            raise AuthenticationFailed(INVALID_CREDENTIALS)
        if not user.is_active:
            raise AuthenticationFailed("User is inactive")
        attrs["user"] = user
        return attrs


class UserDetailSerializer(serializers.ModelSerializer):
    """Profile payload: identity, role, organizational binding and effective permissions."""

    role = serializers.SerializerMethodField()
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "role", "rubrik_id", "division_id", "permissions"]
        read_only_fields = fields

    def get_role(self, obj) -> str | None:
        return obj.role.name if obj.role_id else None

    def get_permissions(self, obj) -> list[str]:
        return sorted(RoleStore.effective_permission_names(obj))


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Name fields only; email, role and organization have dedicated flows."""

    LOCKED_FIELDS = frozenset({"email", "role", "rubrik_id", "division_id"})

    class Meta:
        model = User
        fields = ["first_name", "last_name"]
        extra_kwargs = {"first_name": {"required": False}, "last_name": {"required": False, "allow_blank": True}}

    def validate(self, attrs):
        locked = sorted(self.LOCKED_FIELDS.intersection(self.initial_data))
        if locked:
            raise serializers.ValidationError(f"Fields cannot be updated via this endpoint: {', '.join(locked)}")
        return attrs
