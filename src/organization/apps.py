"""App configuration for the organization app (rubriks and divisions)."""

from django.apps import AppConfig


class OrganizationConfig(AppConfig):
    """Organization app holds the topical rubriks and user divisions."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "organization"
