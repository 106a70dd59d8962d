"""User manager: bcrypt hashing and creation helpers."""

import bcrypt
from django.conf import settings
from django.contrib.auth.base_user import BaseUserManager


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email: str, password: str | None = None, **extra_fields):
        """Create an account with a bcrypt hash; the role is left to the caller."""
        if not email:
            raise ValueError("The Email must be set")
        if password is None:
            raise ValueError("Password must be provided")
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.password_hash = self.hash_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str, **extra_fields):
        """Used by ``createsuperuser``; binds the Super Admin role when it is seeded."""
        from access_control.models import GUARD_NAME, Role, RoleName

        extra_fields.update(is_staff=True, is_superuser=True, is_active=True)
        extra_fields.setdefault(
            "role", Role.objects.filter(name=RoleName.SUPER_ADMIN, guard_name=GUARD_NAME).first()
        )
        return self.create_user(email, password, **extra_fields)

    @staticmethod
    def hash_password(raw_password: str) -> str:
        salt = bcrypt.gensalt(rounds=getattr(settings, "BCRYPT_ROUNDS", 12))
        return bcrypt.hashpw(raw_password.encode(), salt).decode()

    @staticmethod
    def verify_password(user, raw_password: str) -> bool:
        if not user.password_hash:
            return False
        return bcrypt.checkpw(raw_password.encode(), user.password_hash.encode("utf-8"))


__all__ = ["UserManager"]
