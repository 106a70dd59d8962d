"""Role/permission store: set-membership queries and assignment primitives.

Everything here is scoped to the single ``web`` guard. Callers that need
several primitives to apply as one unit wrap them in ``transaction.atomic``.
"""

from collections.abc import Iterable

from django.conf import settings
from django.db.models import Q

from .models import GUARD_NAME, Permission, Role, RoleName


class RoleStore:
    """Thin adapter over the Role/Permission tables."""

    guard_name = GUARD_NAME

    @staticmethod
    def _is_authenticated(user) -> bool:
        return user is not None and getattr(user, "is_authenticated", False)

    @classmethod
    def has_role(cls, user, name: str) -> bool:
        if not cls._is_authenticated(user):
            return False
        role = getattr(user, "role", None)
        return role is not None and role.name == name and role.guard_name == cls.guard_name

    @classmethod
    def has_permission(cls, user, name: str) -> bool:
        """True when the permission is held directly or through the user's role."""
        if not cls._is_authenticated(user) or getattr(user, "pk", None) is None:
            return False
        return (
            Permission.objects.filter(name=name, guard_name=cls.guard_name)
            .filter(Q(users=user) | Q(roles__users=user))
            .exists()
        )

    @classmethod
    def can(cls, user, name: str) -> bool:
        """Capability check where Super Admin implicitly holds every permission."""
        return cls.has_role(user, RoleName.SUPER_ADMIN) or cls.has_permission(user, name)

    @classmethod
    def superuser_bypass(cls, user) -> bool:
        """True for a Django superuser while ``ALLOW_SUPERUSER_BYPASS`` is enabled."""
        return (
            cls._is_authenticated(user)
            and getattr(settings, "ALLOW_SUPERUSER_BYPASS", False)
            and getattr(user, "is_superuser", False)
        )

    @classmethod
    def get_role(cls, name: str | None) -> Role | None:
        if not name:
            return None
        return Role.objects.filter(name=name, guard_name=cls.guard_name).first()

    @classmethod
    def role_exists(cls, name: str | None) -> bool:
        if not name:
            return False
        return Role.objects.filter(name=name, guard_name=cls.guard_name).exists()

    @classmethod
    def permission_exists(cls, name: str | None) -> bool:
        if not name:
            return False
        return Permission.objects.filter(name=name, guard_name=cls.guard_name).exists()

    @classmethod
    def missing_permissions(cls, names: Iterable[str]) -> list[str]:
        """Return the requested names that are not registered, in request order."""
        wanted = list(dict.fromkeys(names))
        known = set(
            Permission.objects.filter(name__in=wanted, guard_name=cls.guard_name).values_list(
                "name", flat=True
            )
        )
        return [name for name in wanted if name not in known]

    @classmethod
    def assign_role(cls, user, name: str) -> Role:
        """Make ``name`` the user's only role."""
        role = Role.objects.get(name=name, guard_name=cls.guard_name)
        user.role = role
        user.save(update_fields=["role", "updated_at"])
        return role

    @classmethod
    def revoke_all_roles(cls, user) -> None:
        user.role = None
        user.save(update_fields=["role", "updated_at"])

    @classmethod
    def sync_permissions(cls, user, names: Iterable[str]) -> None:
        """Replace the user's direct permissions with exactly ``names``."""
        permissions = Permission.objects.filter(name__in=list(names), guard_name=cls.guard_name)
        user.direct_permissions.set(permissions)

    @classmethod
    def sync_role_permissions(cls, role: Role, names: Iterable[str]) -> None:
        permissions = Permission.objects.filter(name__in=list(names), guard_name=cls.guard_name)
        role.permissions.set(permissions)

    @classmethod
    def direct_permission_names(cls, user) -> set[str]:
        return set(user.direct_permissions.values_list("name", flat=True))

    @classmethod
    def effective_permission_names(cls, user) -> set[str]:
        """Direct permissions plus those granted by the role."""
        names = cls.direct_permission_names(user)
        if user.role_id:
            names |= set(user.role.permissions.values_list("name", flat=True))
        return names


__all__ = ["RoleStore"]
