"""Database models for files app."""

from typing import TYPE_CHECKING, Final, final, override

from django.contrib.auth import get_user_model
from django.db import models
from django.db.models.functions import Coalesce

from filegate.apps.files.infrastructure.metadata import MAX_CONTENT_TYPE_LENGTH

User = get_user_model()

# Constants for field max lengths
_FILENAME_MAX_LENGTH: Final = 255
_OBJECT_KEY_MAX_LENGTH: Final = 512


class FileQuerySet(models.QuerySet['File']):
    """Queries over file records."""

    def owned_by(self, owner_id: int) -> 'FileQuerySet':
        """Restrict to files of one owner."""
        return self.filter(owner_id=owner_id)

    def total_size(self) -> int:
        """Sum of size_bytes without locking (0 when empty)."""
        return self.aggregate(
            total=Coalesce(
                models.Sum('size_bytes'),
                0,
                output_field=models.BigIntegerField(),
            ),
        )['total']

    def locked_total_size(self) -> int:
        """Sum of size_bytes while holding row locks on every summed row.

        Rows are locked with SELECT ... FOR UPDATE in primary key order so
        concurrent callers always acquire locks in the same sequence.
        PostgreSQL does not allow FOR UPDATE together with aggregates,
        hence the sum is computed here. Must run inside
        ``transaction.atomic()``.

        Returns:
            Total size in bytes.
        """
        sizes = self.select_for_update().order_by('pk').values_list(
            'size_bytes',
            flat=True,
        )
        return sum(sizes)


@final
class File(models.Model):
    """Metadata of a file whose bytes live in object storage.

    The row is the system of record for the file's existence: a file
    exists exactly when its row does. ``object_key`` follows the pattern
    users/{owner_id}/files/{uuid}-{filename} and never changes.
    """

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='stored_files',
    )

    filename = models.CharField(
        max_length=_FILENAME_MAX_LENGTH,
        help_text='Sanitized display name, unique per owner',
    )

    object_key = models.CharField(
        max_length=_OBJECT_KEY_MAX_LENGTH,
        unique=True,
        editable=False,
        help_text='Key in storage: users/{owner_id}/files/{uuid}-{filename}',
    )

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    content_type = models.CharField(
        max_length=MAX_CONTENT_TYPE_LENGTH,
        help_text='MIME type validated against the allow-list on upload',
    )

    thumbnail_key = models.CharField(
        max_length=_OBJECT_KEY_MAX_LENGTH,
        null=True,
        blank=True,
        help_text='Optional key of a derived asset',
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = FileQuerySet.as_manager()

    if TYPE_CHECKING:
        owner_id: int

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering = ['-created_at', '-id']

        indexes = [
            # Optimize listing queries
            models.Index(
                fields=['owner', '-created_at'],
                name='files_owner_recent_idx',
            ),
        ]

        constraints = [
            # Closes the race left open by the pre-insert name check
            models.UniqueConstraint(
                fields=['owner', 'filename'],
                name='files_owner_filename_unique',
            ),
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='files_size_bytes_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.filename}'

    def object_keys(self) -> list[str]:
        """All storage keys owned by this record (content, thumbnail)."""
        keys = [self.object_key]
        if self.thumbnail_key:
            keys.append(self.thumbnail_key)
        return keys
