"""Seed permissions, the editorial roles, and a default Super Admin account."""

import logging
import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from access_control.models import GUARD_NAME, Permission, PermissionName, Role, RoleName
from access_control.store import RoleStore
from authentication.managers import UserManager

logger = logging.getLogger(__name__)

P = PermissionName

ROLE_PERMISSIONS: dict[str, list[str]] = {
    RoleName.SUPER_ADMIN: [p.value for p in PermissionName],
    RoleName.ADMIN_RUBRIK: [
        P.MANAGE_RUBRIKS,
        P.ARTICLE_REVIEW,
        P.ARTICLE_APPROVE,
        P.ARTICLE_PUBLISH,
        P.ARTICLE_REJECT,
    ],
    RoleName.EDITOR_RUBRIK: [P.ARTICLE_REVIEW, P.ARTICLE_APPROVE],
    RoleName.AUTHOR: [P.ARTICLE_CREATE],
}

DEFAULT_ADMIN_EMAIL = "admin@example.com"


def create_seed_permissions() -> dict[str, Permission]:
    """Create every known permission in the web guard; return a name->Permission map."""
    permissions = {}
    for name in PermissionName:
        permission, _ = Permission.objects.get_or_create(
            name=name.value,
            guard_name=GUARD_NAME,
            defaults={"description": name.label},
        )
        permissions[name.value] = permission
    return permissions


def create_seed_roles() -> dict[str, Role]:
    """Create the editorial roles and sync their permissions; return a name->Role map."""
    create_seed_permissions()
    roles = {}
    for name, permission_names in ROLE_PERMISSIONS.items():
        role, _ = Role.objects.get_or_create(name=str(name), guard_name=GUARD_NAME)
        RoleStore.sync_role_permissions(role, [str(p) for p in permission_names])
        roles[str(name)] = role
    return roles


def create_default_admin(role: Role, email: str = DEFAULT_ADMIN_EMAIL, password: str | None = None):
    User = get_user_model()
    password = password or os.environ.get("SEED_ADMIN_PASSWORD", "adminpass")
    user, created = User.objects.get_or_create(
        email=email,
        defaults={
            "role": role,
            "first_name": "Admin",
            "password_hash": UserManager.hash_password(password),
            "is_staff": True,
            "is_superuser": True,
        },
    )
    if not created and user.role_id != role.pk:
        RoleStore.assign_role(user, role.name)
    return user, created


class Command(BaseCommand):
    help = (
        "Seed permissions, the Super Admin / Admin Rubrik / Editor Rubrik / Author "
        "roles and a default Super Admin user. Use --reset to clear them first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete the seeded roles, permissions and default admin before seeding.",
        )
        parser.add_argument("--admin-email", default=DEFAULT_ADMIN_EMAIL)

    def handle(self, *args, **options):
        with transaction.atomic():
            if options.get("reset"):
                self._reset_seeded_data(options["admin_email"])

            self.stdout.write("Seeding RBAC data...")
            roles = create_seed_roles()
            _, created = create_default_admin(roles[RoleName.SUPER_ADMIN.value], email=options["admin_email"])

        logger.info("Seeded %d roles (default admin created: %s)", len(roles), created)
        self.stdout.write(self.style.SUCCESS("RBAC seed completed."))

    def _reset_seeded_data(self, admin_email: str) -> None:
        """Remove the default admin, the seeded roles and the seeded permissions.

        Roles still held by other users are kept; their holders would
        otherwise be left without a role.
        """
        self.stdout.write("Resetting previously seeded RBAC data...")
        get_user_model().objects.filter(email=admin_email).delete()

        seeded_roles = Role.objects.filter(name__in=[str(n) for n in ROLE_PERMISSIONS], guard_name=GUARD_NAME)
        in_use = seeded_roles.filter(users__isnull=False).distinct()
        for role in in_use:
            self.stdout.write(self.style.WARNING(f"Keeping role '{role.name}': still assigned to users."))
        seeded_roles.exclude(pk__in=in_use.values("pk")).delete()
        Permission.objects.filter(
            name__in=[p.value for p in PermissionName], guard_name=GUARD_NAME, roles__isnull=True
        ).delete()

        self.stdout.write(self.style.WARNING("Seeded RBAC data cleared."))
