"""App configuration for shared project plumbing."""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Settings, URL root, JWT middleware, envelope and domain errors."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
