"""System checks for RBAC configuration."""

from django.core.checks import Error, register

from access_control.permissions import CapabilityPermission


@register()
def capability_views_declare_permission(app_configs, **kwargs):
    """Ensure capability-protected views declare a ``required_permission``.

    Only the known admin viewsets are inspected. New views protected by
    CapabilityPermission should be added here.
    """
    errors: list[Error] = []

    # Import here to avoid circular imports at module load time.
    from access_control.views import PermissionViewSet, RoleViewSet, UserViewSet

    protected_views = [UserViewSet, RoleViewSet, PermissionViewSet]

    for view_cls in protected_views:
        permission_classes = getattr(view_cls, "permission_classes", [])
        if CapabilityPermission in permission_classes:
            capability = getattr(view_cls, "required_permission", None)
            if not capability:
                errors.append(
                    Error(
                        f"{view_cls.__name__} uses CapabilityPermission but does not "
                        f"define required_permission.",
                        obj=view_cls,
                        id="access_control.E001",
                    )
                )

    return errors
