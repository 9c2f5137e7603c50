"""Django app configuration for files app."""

from typing import override

from django.apps import AppConfig


class FilesConfig(AppConfig):
    """Configuration for files app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'filegate.apps.files'
    verbose_name = 'Files'

    @override
    def ready(self) -> None:
        """Validate size limits and import signal handlers."""
        from filegate.apps.files import signals  # noqa: F401, WPS433
        from filegate.apps.files.logic.quota_operations import (  # noqa: WPS433
            validate_storage_limits,
        )

        validate_storage_limits()
