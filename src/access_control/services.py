"""User assignment: single-role policy and rubrik/division consistency.

``assign_role`` validates every reference first and only then applies the
role, rubrik, division and direct-permission changes inside one transaction,
so a failed call leaves the user untouched.
"""

import logging
import uuid
from collections.abc import Iterable, Sequence

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from core.errors import NotFound, Unauthorized, ValidationFailed
from organization.selectors import division_exists, rubrik_exists

from .models import PermissionName, role_forbids_rubrik, role_requires_rubrik
from .store import RoleStore

logger = logging.getLogger(__name__)


def _is_blank(value) -> bool:
    return value is None or value == ""


class UserAssignmentService:
    """Apply role/rubrik/division/permission assignments to users."""

    def __init__(self, store: type[RoleStore] = RoleStore):
        self.store = store

    def _ensure_can_manage(self, actor) -> None:
        if self.store.superuser_bypass(actor):
            return
        if not self.store.can(actor, PermissionName.MANAGE_USERS):
            raise Unauthorized()

    def validate_assignment(
        self,
        role: str,
        rubrik_id=None,
        division_id=None,
        direct_permissions: Iterable[str] = (),
    ) -> dict[str, list[str]]:
        """Return per-field errors for an assignment request (empty when valid)."""
        errors: dict[str, list[str]] = {}
        role_name = (role or "").strip()

        if not role_name:
            errors["role"] = ["A role is required."]
        elif not self.store.role_exists(role_name):
            errors["role"] = [f"Role '{role_name}' does not exist."]

        if role_requires_rubrik(role_name):
            if _is_blank(rubrik_id):
                errors["rubrik_id"] = ["A rubrik is required for this role."]
            elif not rubrik_exists(rubrik_id):
                errors["rubrik_id"] = ["The selected rubrik does not exist."]
        elif role_forbids_rubrik(role_name):
            if not _is_blank(rubrik_id):
                errors["rubrik_id"] = ["This role cannot be bound to a rubrik."]
        elif not _is_blank(rubrik_id) and not rubrik_exists(rubrik_id):
            errors["rubrik_id"] = ["The selected rubrik does not exist."]

        if not _is_blank(division_id) and not division_exists(division_id):
            errors["division_id"] = ["The selected division does not exist."]

        missing = self.store.missing_permissions(direct_permissions)
        if missing:
            errors["direct_permissions"] = [f"Permission '{name}' does not exist." for name in missing]

        return errors

    def assign_role(
        self,
        actor,
        target,
        role: str,
        rubrik_id=None,
        division_id=None,
        direct_permissions: Iterable[str] = (),
    ):
        """Give ``target`` exactly ``role`` with consistent rubrik/division/permissions."""
        self._ensure_can_manage(actor)
        if target is None or getattr(target, "pk", None) is None:
            raise NotFound("User not found.")

        permission_names = list(dict.fromkeys(direct_permissions or []))
        errors = self.validate_assignment(role, rubrik_id, division_id, permission_names)
        if errors:
            raise ValidationFailed(errors)

        role_name = role.strip()
        User = get_user_model()
        with transaction.atomic():
            try:
                user = User.objects.select_for_update().get(pk=target.pk)
            except User.DoesNotExist as exc:
                raise NotFound("User not found.") from exc

            user.rubrik_id = None if role_forbids_rubrik(role_name) or _is_blank(rubrik_id) else rubrik_id
            user.division_id = None if _is_blank(division_id) else division_id
            user.save(update_fields=["rubrik", "division", "updated_at"])

            self.store.revoke_all_roles(user)
            self.store.assign_role(user, role_name)
            self.store.sync_permissions(user, permission_names)

        target.refresh_from_db()
        logger.info(
            "Assigned role %r to user %s (rubrik=%s, division=%s, direct_permissions=%s)",
            role_name,
            target.pk,
            target.rubrik_id,
            target.division_id,
            permission_names,
        )
        return target

    def bulk_assign_role(self, actor, user_ids: Sequence, role: str) -> list:
        """Overwrite the role of every listed user; all or nothing."""
        self._ensure_can_manage(actor)

        role_obj = self.store.get_role((role or "").strip())
        if role_obj is None:
            raise ValidationFailed({"role": [f"Role '{role}' does not exist."]})

        ids = list(dict.fromkeys(str(user_id) for user_id in user_ids or []))
        if not ids:
            raise ValidationFailed({"user_ids": ["At least one user is required."]})

        parsed, invalid = [], []
        for user_id in ids:
            try:
                parsed.append(uuid.UUID(user_id))
            except ValueError:
                invalid.append(user_id)

        User = get_user_model()
        with transaction.atomic():
            users = list(User.objects.select_for_update().filter(pk__in=parsed))
            found = {str(user.pk) for user in users}
            missing = invalid + [str(user_id) for user_id in parsed if str(user_id) not in found]
            if missing:
                raise NotFound(f"Unknown users: {', '.join(missing)}")

            if role_obj.requires_rubrik:
                without_rubrik = sorted(user.email for user in users if user.rubrik_id is None)
                if without_rubrik:
                    raise ValidationFailed(
                        {
                            "user_ids": [
                                f"Role '{role_obj.name}' requires a rubrik. "
                                f"Users without rubrik: {', '.join(without_rubrik)}"
                            ]
                        }
                    )

            User.objects.filter(pk__in=[user.pk for user in users]).update(
                role=role_obj, updated_at=timezone.now()
            )

        logger.info("Bulk-assigned role %r to %d users", role_obj.name, len(users))
        return list(User.objects.filter(pk__in=[user.pk for user in users]).select_related("role"))


__all__ = ["UserAssignmentService"]
