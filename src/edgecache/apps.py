"""Edge cache Django app configuration."""

from django.apps import AppConfig


class EdgeCacheConfig(AppConfig):
    """Edge cache app configuration."""

    default_auto_field = "django.db.models.AutoField"
    name = "edgecache"

    def ready(self):
        """Connect content signals to cache invalidation."""
        from . import signals  # noqa: F401
