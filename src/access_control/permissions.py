"""DRF permission class checking the capability a view declares."""

from rest_framework import permissions

from .store import RoleStore


class CapabilityPermission(permissions.BasePermission):
    """Allow the request when the user holds the view's ``required_permission``.

    The permission may be held directly or through the user's role; Super Admin
    holds every capability. ``RoleStore.superuser_bypass`` short-circuits the
    check the same way the assignment service does.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if RoleStore.superuser_bypass(user):
            return True

        capability = getattr(view, "required_permission", None)
        if not capability:
            return False
        return RoleStore.can(user, capability)


__all__ = ["CapabilityPermission"]
