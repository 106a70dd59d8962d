"""RBAC models: Role and Permission, plus the closed name enumerations.

Roles and permissions are stored rows (new ones can be registered through the
admin API), while the names the application code relies on are fixed
``TextChoices`` so every check refers to a known identifier.
"""

from django.db import models

GUARD_NAME = "web"


class RoleName(models.TextChoices):
    """Roles the editorial workflow knows about."""

    SUPER_ADMIN = "Super Admin"
    ADMIN_RUBRIK = "Admin Rubrik"
    EDITOR_RUBRIK = "Editor Rubrik"
    AUTHOR = "Author"


class PermissionName(models.TextChoices):
    """Capabilities checked by the admin endpoints and seeded by default."""

    MANAGE_USERS = "manage.users"
    MANAGE_ROLES = "manage.roles"
    MANAGE_PERMISSIONS = "manage.permissions"
    MANAGE_RUBRIKS = "manage.rubriks"
    MANAGE_DIVISIONS = "manage.divisions"
    ARTICLE_CREATE = "article.create"
    ARTICLE_REVIEW = "article.review"
    ARTICLE_APPROVE = "article.approve"
    ARTICLE_PUBLISH = "article.publish"
    ARTICLE_REJECT = "article.reject"


RUBRIK_SCOPED_ROLES = frozenset({RoleName.ADMIN_RUBRIK.value, RoleName.EDITOR_RUBRIK.value})
UNSCOPED_ROLES = frozenset({RoleName.SUPER_ADMIN.value, RoleName.AUTHOR.value})


def role_requires_rubrik(role_name: str | None) -> bool:
    """Rubrik-scoped roles, including custom roles named after a rubrik."""
    name = (role_name or "").strip()
    if name in RUBRIK_SCOPED_ROLES:
        return True
    return "rubrik" in name.lower()


def role_forbids_rubrik(role_name: str | None) -> bool:
    """Roles that must never carry a rubrik (matched case-insensitively)."""
    name = (role_name or "").strip().lower()
    return name in {n.lower() for n in UNSCOPED_ROLES}


class Permission(models.Model):
    """Named capability, assignable to roles or directly to users."""

    name = models.CharField(max_length=100)
    guard_name = models.CharField(max_length=50, default=GUARD_NAME)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        unique_together = ("name", "guard_name")

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class Role(models.Model):
    """Named role; a user holds at most one."""

    name = models.CharField(max_length=100)
    guard_name = models.CharField(max_length=50, default=GUARD_NAME)
    description = models.TextField(blank=True)
    permissions = models.ManyToManyField(Permission, related_name="roles", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        unique_together = ("name", "guard_name")

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name

    @property
    def requires_rubrik(self) -> bool:
        return role_requires_rubrik(self.name)


__all__ = [
    "GUARD_NAME",
    "RoleName",
    "PermissionName",
    "RUBRIK_SCOPED_ROLES",
    "UNSCOPED_ROLES",
    "role_requires_rubrik",
    "role_forbids_rubrik",
    "Permission",
    "Role",
]
