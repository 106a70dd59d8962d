"""App configuration for accounts and token authentication."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Holds the custom User model, bcrypt manager and JWT token service."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Accounts"
