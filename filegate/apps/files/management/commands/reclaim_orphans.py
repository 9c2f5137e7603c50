"""Management command to delete objects no file record references."""

import logging
from datetime import datetime, timedelta
from typing import Any, Final

from django.core.files.storage import default_storage
from django.core.management.base import BaseCommand
from django.utils import timezone

from filegate.apps.files.exceptions import StorageUnavailableError
from filegate.apps.files.infrastructure.metadata import OBJECT_KEY_ROOT
from filegate.apps.files.models import File

_DEFAULT_BATCH_SIZE: Final = 1000
_DEFAULT_GRACE_MINUTES: Final = 60

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Remove orphaned objects left behind by failed deletes or uploads."""

    help = 'Delete stored objects that no file record references'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--prefix',
            default=OBJECT_KEY_ROOT,
            help=f'Key prefix to scan (default: {OBJECT_KEY_ROOT})',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max objects to delete (default: {_DEFAULT_BATCH_SIZE})',
        )
        parser.add_argument(
            '--grace-minutes',
            type=int,
            default=_DEFAULT_GRACE_MINUTES,
            help=(
                'Skip objects modified within this many minutes '
                f'(default: {_DEFAULT_GRACE_MINUTES})'
            ),
        )

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: WPS210
        """Execute the reclamation.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        prefix = options['prefix']
        cutoff = timezone.now() - timedelta(minutes=options['grace_minutes'])

        self.stdout.write(
            f'Looking for orphaned objects under {prefix!r} '
            f'last modified before {cutoff}',
        )

        known_keys = _referenced_keys()
        storage = default_storage

        count = 0
        failed = 0
        skipped = 0

        for stored in storage.list_object_keys(prefix):
            if count + failed >= batch_size:
                break
            if stored.key in known_keys:
                continue
            if not _is_settled(stored.last_modified, cutoff):
                skipped += 1
                continue

            if dry_run:
                self.stdout.write(f'Would delete: {stored.key}')
                count += 1
                continue

            try:
                storage.delete_object(stored.key)
            except StorageUnavailableError as exc:
                self.stderr.write(f'Failed to delete {stored.key}: {exc}')
                failed += 1
                continue

            count += 1
            logger.info('Reclaimed orphaned object: %s', stored.key)

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Would reclaim {count} objects, {skipped} too recent',
                ),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Reclaimed {count} objects, {failed} failed, '
                    f'{skipped} too recent',
                ),
            )


def _referenced_keys() -> set[str]:
    keys = set(File.objects.values_list('object_key', flat=True))
    keys.update(
        File.objects.exclude(
            thumbnail_key__isnull=True,
        ).exclude(
            thumbnail_key='',
        ).values_list('thumbnail_key', flat=True),
    )
    return keys


def _is_settled(last_modified: datetime | None, cutoff: datetime) -> bool:
    # Backends that omit LastModified are treated as settled
    return last_modified is None or last_modified <= cutoff
