"""Shared helpers for tests (RBAC seeding, users, rubriks, fake Redis)."""

from __future__ import annotations

from typing import Dict
from unittest import mock

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from access_control.models import Role
from authentication.managers import UserManager
from authentication.services import TokenService
from organization.models import Division, Rubrik
from scripts.management.commands.seed_rbac import create_seed_roles

User = get_user_model()

PASSWORD = "StrongPass123"


class FakeRedis:
    """Minimal Redis stub supporting the commands used by TokenService."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def get(self, key: str):
        return self._store.get(key)


class FakeRedisMixin:
    """Patch the Redis client factory with a shared FakeRedis for a TestCase."""

    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.redis_patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.redis_patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        for patcher in cls.redis_patchers:
            patcher.stop()
        super().tearDownClass()


def seed_rbac_basics() -> dict[str, Role]:
    """Create the editorial roles and permissions used by the seed command."""
    return create_seed_roles()


def create_user(email: str, password: str = PASSWORD, role: Role | None = None, **extra):
    """Create a user with a bcrypt-hashed password for tests."""

    return User.objects.create(
        email=email,
        password_hash=UserManager.hash_password(password),
        role=role,
        **extra,
    )


def create_rubrik(name: str, slug: str | None = None) -> Rubrik:
    return Rubrik.objects.create(name=name, slug=slug or name.lower().replace(" ", "-"))


def create_division(name: str) -> Division:
    return Division.objects.create(name=name, slug=name.lower().replace(" ", "-"))


def client_for(user) -> APIClient:
    """APIClient carrying a freshly minted access token for ``user``."""
    access, _ = TokenService.generate_tokens(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    return client
