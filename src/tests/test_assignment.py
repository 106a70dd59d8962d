"""User assignment service: single role, rubrik scoping, permission sync, bulk."""

from __future__ import annotations

import uuid

from django.test import TestCase

from access_control.models import GUARD_NAME, PermissionName, Role, RoleName
from access_control.services import UserAssignmentService
from access_control.store import RoleStore
from core.errors import NotFound, Unauthorized, ValidationFailed
from tests.utils import create_division, create_rubrik, create_user, seed_rbac_basics

R = RoleName


class AssignRoleTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.roles = seed_rbac_basics()
        cls.rubrik = create_rubrik("Science")
        cls.division = create_division("Newsroom")
        cls.super_admin = create_user("root@test.com", role=cls.roles[R.SUPER_ADMIN.value])
        cls.target = create_user("target@test.com", role=cls.roles[R.AUTHOR.value])
        cls.author = create_user("author@test.com", role=cls.roles[R.AUTHOR.value])

    def setUp(self):
        self.service = UserAssignmentService()

    def assign(self, role, **kwargs):
        return self.service.assign_role(self.super_admin, self.target, role, **kwargs)

    def test_assign_scoped_role_with_rubrik(self):
        user = self.assign(R.EDITOR_RUBRIK, rubrik_id=self.rubrik.pk, division_id=self.division.pk)

        self.assertEqual(user.role.name, R.EDITOR_RUBRIK)
        self.assertEqual(user.rubrik_id, self.rubrik.pk)
        self.assertEqual(user.division_id, self.division.pk)

    def test_new_role_replaces_the_old_one(self):
        self.assign(R.EDITOR_RUBRIK, rubrik_id=self.rubrik.pk)
        user = self.assign(R.AUTHOR)

        self.assertTrue(RoleStore.has_role(user, R.AUTHOR))
        self.assertFalse(RoleStore.has_role(user, R.EDITOR_RUBRIK))
        self.assertIsNone(user.rubrik_id)

    def test_scoped_role_without_valid_rubrik_fails_and_changes_nothing(self):
        for role in (R.EDITOR_RUBRIK, R.ADMIN_RUBRIK):
            for rubrik_id in (None, "", 999_999):
                with self.subTest(role=role, rubrik_id=rubrik_id):
                    with self.assertRaises(ValidationFailed) as ctx:
                        self.assign(role, rubrik_id=rubrik_id)
                    self.assertIn("rubrik_id", ctx.exception.field_errors)
                    self.target.refresh_from_db()
                    self.assertEqual(self.target.role.name, R.AUTHOR)
                    self.assertIsNone(self.target.rubrik_id)

    def test_unscoped_roles_reject_a_rubrik(self):
        for role in (R.SUPER_ADMIN, R.AUTHOR):
            with self.subTest(role=role):
                with self.assertRaises(ValidationFailed) as ctx:
                    self.assign(role, rubrik_id=self.rubrik.pk)
                self.assertIn("rubrik_id", ctx.exception.field_errors)

    def test_unknown_references_are_reported_per_field(self):
        with self.assertRaises(ValidationFailed) as ctx:
            self.assign("Ghost", division_id=424242, direct_permissions=["article.teleport"])
        errors = ctx.exception.field_errors
        self.assertEqual(errors["role"], ["Role 'Ghost' does not exist."])
        self.assertIn("division_id", errors)
        self.assertEqual(errors["direct_permissions"], ["Permission 'article.teleport' does not exist."])

    def test_direct_permission_sync_is_exact(self):
        a, b = PermissionName.ARTICLE_REVIEW.value, PermissionName.ARTICLE_PUBLISH.value
        self.assign(R.AUTHOR, direct_permissions=[a, b])
        user = self.assign(R.AUTHOR, direct_permissions=[b])
        self.assertEqual(RoleStore.direct_permission_names(user), {b})

        user = self.assign(R.AUTHOR, direct_permissions=[b])
        self.assertEqual(RoleStore.direct_permission_names(user), {b})

    def test_direct_permission_counts_towards_capabilities(self):
        user = self.assign(R.AUTHOR, direct_permissions=[PermissionName.MANAGE_USERS.value])
        self.assertTrue(RoleStore.has_permission(user, PermissionName.MANAGE_USERS))
        self.assertTrue(RoleStore.has_permission(user, PermissionName.ARTICLE_CREATE))
        self.assertFalse(RoleStore.has_permission(user, PermissionName.ARTICLE_PUBLISH))

    def test_actor_needs_manage_users(self):
        with self.assertRaises(Unauthorized):
            self.service.assign_role(self.author, self.target, R.SUPER_ADMIN)
        self.target.refresh_from_db()
        self.assertEqual(self.target.role.name, R.AUTHOR)

    def test_custom_rubrik_role_requires_rubrik(self):
        Role.objects.create(name="Columnist Rubrik", guard_name=GUARD_NAME)
        with self.assertRaises(ValidationFailed):
            self.assign("Columnist Rubrik")
        user = self.assign("Columnist Rubrik", rubrik_id=self.rubrik.pk)
        self.assertEqual(user.rubrik_id, self.rubrik.pk)


class BulkAssignRoleTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.roles = seed_rbac_basics()
        cls.rubrik = create_rubrik("Tech")
        cls.super_admin = create_user("root@test.com", role=cls.roles[R.SUPER_ADMIN.value])
        cls.editor = create_user("editor@test.com", role=cls.roles[R.EDITOR_RUBRIK.value], rubrik=cls.rubrik)
        cls.author = create_user("author@test.com", role=cls.roles[R.AUTHOR.value])

    def setUp(self):
        self.service = UserAssignmentService()

    def test_bulk_assign_author_replaces_previous_roles(self):
        users = self.service.bulk_assign_role(self.super_admin, [self.editor.pk, self.author.pk], R.AUTHOR)

        self.assertEqual({u.role.name for u in users}, {R.AUTHOR.value})
        self.editor.refresh_from_db()
        self.assertFalse(RoleStore.has_role(self.editor, R.EDITOR_RUBRIK))
        # Bulk assignment never touches rubrik fields.
        self.assertEqual(self.editor.rubrik_id, self.rubrik.pk)

    def test_unknown_role_touches_nobody(self):
        with self.assertRaises(ValidationFailed):
            self.service.bulk_assign_role(self.super_admin, [self.editor.pk, self.author.pk], "Ghost")
        self.editor.refresh_from_db()
        self.assertEqual(self.editor.role.name, R.EDITOR_RUBRIK)

    def test_unknown_user_fails_whole_batch(self):
        with self.assertRaises(NotFound):
            self.service.bulk_assign_role(self.super_admin, [self.editor.pk, uuid.uuid4()], R.AUTHOR)
        self.editor.refresh_from_db()
        self.assertEqual(self.editor.role.name, R.EDITOR_RUBRIK)

    def test_scoped_role_requires_every_user_to_have_a_rubrik(self):
        with self.assertRaises(ValidationFailed):
            self.service.bulk_assign_role(self.super_admin, [self.editor.pk, self.author.pk], R.ADMIN_RUBRIK)
        self.author.refresh_from_db()
        self.assertEqual(self.author.role.name, R.AUTHOR)

    def test_actor_needs_manage_users(self):
        with self.assertRaises(Unauthorized):
            self.service.bulk_assign_role(self.author, [self.editor.pk], R.AUTHOR)
