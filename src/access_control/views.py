"""ViewSets for user, role and permission administration."""

from typing import cast

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import action

from authentication.managers import UserManager
from core.errors import ValidationFailed
from core.response import BaseViewSet, api_response, no_content
from .models import GUARD_NAME, Permission, PermissionName, Role, RoleName
from .permissions import CapabilityPermission
from .serializers import (
    AssignUserSerializer,
    BulkAssignRoleSerializer,
    PermissionSerializer,
    RoleSerializer,
    UserCreateSerializer,
    UserSummarySerializer,
)
from .services import UserAssignmentService
from .store import RoleStore

User = get_user_model()


class UserViewSet(BaseViewSet):
    """List, create and delete users; assign roles one by one or in bulk."""

    serializer_class = UserSummarySerializer
    permission_classes = [CapabilityPermission]
    required_permission = PermissionName.MANAGE_USERS
    http_method_names = ["get", "post", "delete", "head", "options"]
    assignment_service = UserAssignmentService()

    def get_queryset(self):
        return (
            User.objects.select_related("role", "rubrik", "division")
            .prefetch_related("direct_permissions")
            .order_by("email")
        )

    def create(self, request, *args, **kwargs):
        """Create a user and apply the initial role assignment atomically."""
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        manager = cast(UserManager, User.objects)

        with transaction.atomic():
            user = manager.create_user(
                email=data["email"],
                password=data["password"],
                first_name=data["first_name"],
                last_name=data.get("last_name", ""),
            )
            self.assignment_service.assign_role(
                request.user,
                user,
                data["role"],
                rubrik_id=data.get("rubrik_id"),
                division_id=data.get("division_id"),
                direct_permissions=data.get("direct_permissions", []),
            )

        return api_response(UserSummarySerializer(user).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        user = self.get_object()
        if RoleStore.has_role(user, RoleName.SUPER_ADMIN):
            raise ValidationFailed({"user": ["Super Admin users cannot be deleted."]})
        user.delete()
        return no_content()

    @action(detail=True, methods=["post"], url_path="assign")
    def assign(self, request, pk=None):
        """Replace the user's role, rubrik, division and direct permissions."""
        user = self.get_object()
        serializer = AssignUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = self.assignment_service.assign_role(
            request.user,
            user,
            data["role"],
            rubrik_id=data.get("rubrik_id"),
            division_id=data.get("division_id"),
            direct_permissions=data.get("direct_permissions", []),
        )
        return api_response(UserSummarySerializer(user).data)

    @action(detail=False, methods=["post"], url_path="bulk-assign-role")
    def bulk_assign_role(self, request):
        """Overwrite the role of every listed user with a single role."""
        serializer = BulkAssignRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        users = self.assignment_service.bulk_assign_role(
            request.user,
            serializer.validated_data["user_ids"],
            serializer.validated_data["role"],
        )
        return api_response(UserSummarySerializer(users, many=True).data)


class RoleViewSet(BaseViewSet):
    """CRUD endpoints for roles with full permission sync on write."""

    serializer_class = RoleSerializer
    permission_classes = [CapabilityPermission]
    required_permission = PermissionName.MANAGE_ROLES

    def get_queryset(self):
        return Role.objects.filter(guard_name=GUARD_NAME).prefetch_related("permissions")

    def perform_create(self, serializer):
        serializer.save(guard_name=GUARD_NAME)

    def perform_destroy(self, instance):
        if instance.name == RoleName.SUPER_ADMIN:
            raise ValidationFailed({"role": ["The Super Admin role cannot be deleted."]})
        if instance.users.exists():
            raise ValidationFailed({"role": ["The role is still assigned to users."]})
        instance.delete()


class PermissionViewSet(BaseViewSet):
    """Read-only listing of registered permissions."""

    serializer_class = PermissionSerializer
    http_method_names = ["get", "head", "options"]
    permission_classes = [CapabilityPermission]
    required_permission = PermissionName.MANAGE_PERMISSIONS

    def get_queryset(self):
        return Permission.objects.filter(guard_name=GUARD_NAME)


__all__ = ["UserViewSet", "RoleViewSet", "PermissionViewSet"]
