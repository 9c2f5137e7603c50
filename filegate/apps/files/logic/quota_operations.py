"""Business logic for storage quota operations."""

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction

from filegate.apps.files.dto import StorageUsageDTO
from filegate.apps.files.exceptions import QuotaExceededError
from filegate.apps.files.models import File

_PERCENT = 100

logger = logging.getLogger(__name__)


def max_total_bytes() -> int:
    """Configured aggregate size limit per owner."""
    return settings.FILEGATE_MAX_TOTAL_SIZE


def validate_storage_limits() -> None:
    """Reject unusable size limits at startup.

    Raises:
        ImproperlyConfigured: If a limit is not positive or the single
            file limit is larger than the aggregate limit.
    """
    max_file = settings.FILEGATE_MAX_FILE_SIZE
    max_total = settings.FILEGATE_MAX_TOTAL_SIZE

    if max_total <= 0:
        raise ImproperlyConfigured(
            f'FILEGATE_MAX_TOTAL_SIZE must be positive, got {max_total}',
        )
    if max_file <= 0:
        raise ImproperlyConfigured(
            f'FILEGATE_MAX_FILE_SIZE must be positive, got {max_file}',
        )
    if max_file > max_total:
        raise ImproperlyConfigured(
            f'FILEGATE_MAX_FILE_SIZE ({max_file}) cannot exceed '
            f'FILEGATE_MAX_TOTAL_SIZE ({max_total})',
        )


def check_and_reserve(owner_id: int, size_bytes: int) -> int:
    """Admit an upload of size_bytes for owner, under row locks.

    Opens a transaction or joins the caller's. Locks the owner's user row
    and every existing file row of the owner (SELECT ... FOR UPDATE,
    ordered by primary key), then compares the locked total with the
    limit. The caller must insert the new row inside the same
    ``transaction.atomic()`` block: the locks are held until it commits,
    so concurrent uploads of the same owner are admitted one at a time.

    Args:
        owner_id: Owner to admit the upload for.
        size_bytes: Size of the upload in bytes.

    Returns:
        Usage in bytes before this upload.

    Raises:
        QuotaExceededError: If upload would exceed quota.
    """
    limit = max_total_bytes()

    with transaction.atomic():
        # The user row serializes owners that have no files to lock yet
        _lock_owner(owner_id)
        used = File.objects.owned_by(owner_id).locked_total_size()

        if used + size_bytes > limit:
            logger.warning(
                'Quota exceeded for owner %d: %d + %d > %d',
                owner_id,
                used,
                size_bytes,
                limit,
            )
            raise QuotaExceededError(
                quota_bytes=limit,
                used_bytes=used,
                required_bytes=size_bytes,
            )

    logger.debug(
        'Admitted %d bytes for owner %d (used %d of %d)',
        size_bytes,
        owner_id,
        used,
        limit,
    )
    return used


def _lock_owner(owner_id: int) -> None:
    user_model = get_user_model()
    list(
        user_model.objects.select_for_update().filter(
            pk=owner_id,
        ).values_list('pk', flat=True),
    )


def get_usage(owner_id: int) -> int:
    """Get current storage usage (without lock, for display only).

    Args:
        owner_id: Owner to sum files for.

    Returns:
        Total size of the owner's files in bytes.
    """
    return File.objects.owned_by(owner_id).total_size()


def get_usage_info(owner_id: int) -> StorageUsageDTO:
    """Get used/max/percentage for display.

    Served from a short-lived cache entry, evicted on upload and delete.
    Never use it for admission decisions.

    Args:
        owner_id: Owner to report on.

    Returns:
        StorageUsageDTO for the owner.
    """
    used = cache.get_or_set(
        usage_cache_key(owner_id),
        lambda: get_usage(owner_id),
        timeout=settings.FILEGATE_USAGE_CACHE_TIMEOUT,
    )
    limit = max_total_bytes()
    return StorageUsageDTO(
        used_bytes=used,
        max_bytes=limit,
        percentage=used / limit * _PERCENT,
    )


def usage_cache_key(owner_id: int) -> str:
    """Cache key of the display usage figure."""
    return f'filegate:usage:{owner_id}'


def stats_cache_key(owner_id: int) -> str:
    """Cache key of the display file stats."""
    return f'filegate:stats:{owner_id}'


def evict_usage_cache(owner_id: int) -> None:
    """Drop cached display figures after the owner's files changed."""
    cache.delete_many([usage_cache_key(owner_id), stats_cache_key(owner_id)])
