"""App configuration for roles, permissions and user assignment."""

from django.apps import AppConfig


class AccessControlConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "access_control"
    verbose_name = "Roles & permissions"

    def ready(self) -> None:
        # Registers the capability system check.
        from . import checks  # noqa: F401
