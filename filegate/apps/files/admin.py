"""Django admin configuration for files app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from filegate.apps.files.models import File

_KILOBYTE = 1024


@admin.register(File)
class FileAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Read-only admin interface for File model.

    Files are only created and removed through the upload and delete
    operations, which keep object storage in step with the database.
    """

    list_display = [
        'filename',
        'owner',
        'size_display',
        'content_type',
        'created_at',
    ]

    list_filter = [
        'content_type',
        'created_at',
    ]

    search_fields = [
        'filename',
        'object_key',
    ]

    readonly_fields = [
        'owner',
        'filename',
        'object_key',
        'size_bytes',
        'content_type',
        'thumbnail_key',
        'created_at',
        'updated_at',
    ]

    def size_display(self, obj: File) -> str:
        """Display file size in human-readable format.

        Args:
            obj: File instance.

        Returns:
            Formatted size string (e.g., '1.5 MB', '234 KB').
        """
        size_bytes = obj.size_bytes

        # Convert to appropriate unit
        if size_bytes < _KILOBYTE:
            return f'{size_bytes} B'
        if size_bytes < _KILOBYTE ** 2:
            return f'{size_bytes / _KILOBYTE:.1f} KB'
        if size_bytes < _KILOBYTE ** 3:
            return f'{size_bytes / _KILOBYTE ** 2:.1f} MB'
        return f'{size_bytes / _KILOBYTE ** 3:.1f} GB'
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Uploads go through the files API only."""
        return False

    def has_change_permission(
        self,
        request: HttpRequest,
        obj: File | None = None,
    ) -> bool:
        """Records are immutable after creation."""
        return False

    def has_delete_permission(
        self,
        request: HttpRequest,
        obj: File | None = None,
    ) -> bool:
        """Deleting here would skip object storage cleanup."""
        return False

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('owner')
