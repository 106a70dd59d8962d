"""Serializers for role, permission and user-assignment resources."""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import GUARD_NAME, Permission, Role, RoleName

User = get_user_model()


class PermissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Permission
        fields = ["id", "name", "guard_name", "description", "created_at", "updated_at"]
        read_only_fields = fields


class RoleSerializer(serializers.ModelSerializer):
    """Serialize roles with permission names instead of numeric IDs."""

    permissions = serializers.SlugRelatedField(
        slug_field="name",
        many=True,
        required=False,
        queryset=Permission.objects.filter(guard_name=GUARD_NAME),
    )
    requires_rubrik = serializers.BooleanField(read_only=True)
    user_count = serializers.SerializerMethodField()

    class Meta:
        """Expose role name, description and permissions; guard and timestamps are read-only."""

        model = Role
        fields = [
            "id",
            "name",
            "guard_name",
            "description",
            "permissions",
            "requires_rubrik",
            "user_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "guard_name", "created_at", "updated_at"]

    @staticmethod
    def get_user_count(obj) -> int:
        return obj.users.count()

    def validate_name(self, value):
        """Prevent duplicate role names within the guard with a friendly error."""
        value = value.strip()
        qs = Role.objects.filter(name=value, guard_name=GUARD_NAME)
        if self.instance:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A role with this name already exists.")
        if self.instance and self.instance.name == RoleName.SUPER_ADMIN and value != RoleName.SUPER_ADMIN:
            raise serializers.ValidationError("The Super Admin role cannot be renamed.")
        return value


class UserSummarySerializer(serializers.ModelSerializer):
    """Read-only user payload with role, rubrik, division and direct permissions."""

    role = serializers.SerializerMethodField()
    rubrik = serializers.SerializerMethodField()
    division = serializers.SerializerMethodField()
    direct_permissions = serializers.SlugRelatedField(slug_field="name", many=True, read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "role",
            "rubrik_id",
            "rubrik",
            "division_id",
            "division",
            "direct_permissions",
            "date_joined",
            "updated_at",
        ]
        read_only_fields = fields

    @staticmethod
    def get_role(obj):
        return obj.role.name if obj.role_id else None

    @staticmethod
    def get_rubrik(obj):
        return obj.rubrik.name if obj.rubrik_id else None

    @staticmethod
    def get_division(obj):
        return obj.division.name if obj.division_id else None


class AssignUserSerializer(serializers.Serializer):
    """Shape of a role assignment request; references are checked by the service."""

    role = serializers.CharField()
    rubrik_id = serializers.IntegerField(required=False, allow_null=True)
    division_id = serializers.IntegerField(required=False, allow_null=True)
    direct_permissions = serializers.ListField(
        child=serializers.CharField(), required=False, default=list
    )


class UserCreateSerializer(AssignUserSerializer):
    """New user plus the initial assignment (role defaults to Author)."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    repeat_password = serializers.CharField(write_only=True, min_length=8)
    first_name = serializers.CharField(required=True, allow_blank=False)
    last_name = serializers.CharField(required=False, allow_blank=True)
    role = serializers.CharField(required=False, allow_blank=True, default=RoleName.AUTHOR.value)

    @staticmethod
    def validate_email(value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already in use")
        return value

    @staticmethod
    def validate_role(value):
        return value.strip() or RoleName.AUTHOR.value

    def validate(self, attrs):
        if attrs.get("password") != attrs.get("repeat_password"):
            raise serializers.ValidationError("Passwords do not match")
        return attrs


class BulkAssignRoleSerializer(serializers.Serializer):
    user_ids = serializers.ListField(child=serializers.UUIDField(), min_length=1)
    role = serializers.CharField()


__all__ = [
    "PermissionSerializer",
    "RoleSerializer",
    "UserSummarySerializer",
    "AssignUserSerializer",
    "UserCreateSerializer",
    "BulkAssignRoleSerializer",
]
