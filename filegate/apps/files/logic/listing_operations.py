"""Business logic for listing, filtering and searching files."""

import logging
import re
from typing import Final

from django.conf import settings
from django.core.cache import cache

from filegate.apps.files.dto import FileDTO, FilePage, FileStatsDTO
from filegate.apps.files.exceptions import InvalidPaginationError
from filegate.apps.files.logic.quota_operations import stats_cache_key
from filegate.apps.files.models import File, FileQuerySet

DEFAULT_PAGE_SIZE: Final = 20
MAX_PAGE_SIZE: Final = 100

_WILDCARD: Final = '*'

logger = logging.getLogger(__name__)


def list_files(
    owner_id: int,
    page: int = 0,
    size: int = DEFAULT_PAGE_SIZE,
    content_type: str | None = None,
    search: str | None = None,
) -> FilePage:
    """List one page of an owner's files, newest first.

    A non-blank ``search`` filters by case-insensitive filename
    substring and takes precedence over ``content_type``, which is a
    pattern where '*' matches any run of characters ('image/*').

    Args:
        owner_id: Owner whose files are listed.
        page: Zero-based page number.
        size: Page size, 1 to 100.
        content_type: Optional content type pattern.
        search: Optional filename substring.

    Returns:
        FilePage with the items and the total match count.

    Raises:
        InvalidPaginationError: If page or size is out of range.
    """
    _validate_pagination(page, size)

    files = File.objects.owned_by(owner_id)
    if search and search.strip():
        files = files.filter(filename__icontains=search.strip())
    elif content_type and content_type.strip():
        files = _filter_content_type(files, content_type.strip())

    offset = page * size
    total = files.count()
    items = [
        FileDTO.from_model(file_instance)
        for file_instance in files.order_by('-created_at', '-id')[offset:offset + size]
    ]
    logger.debug(
        'Listed %d of %d files for owner %d (page %d)',
        len(items),
        total,
        owner_id,
        page,
    )
    return FilePage(items=items, total=total, page=page, size=size)


def _validate_pagination(page: int, size: int) -> None:
    if page < 0:
        raise InvalidPaginationError(
            f'Page must be zero or positive, got {page}',
        )
    if not 1 <= size <= MAX_PAGE_SIZE:
        raise InvalidPaginationError(
            f'Page size must be between 1 and {MAX_PAGE_SIZE}, got {size}',
        )


def _filter_content_type(files: FileQuerySet, pattern: str) -> FileQuerySet:
    if _WILDCARD not in pattern:
        return files.filter(content_type__iexact=pattern)
    regex = '.*'.join(re.escape(part) for part in pattern.split(_WILDCARD))
    return files.filter(content_type__iregex=f'^{regex}$')


def get_file(owner_id: int, file_id: int) -> FileDTO:
    """Get one file of an owner.

    Raises:
        File.DoesNotExist: If file doesn't exist or belongs to someone
            else.
    """
    return FileDTO.from_model(File.objects.owned_by(owner_id).get(pk=file_id))


def get_file_stats(owner_id: int) -> FileStatsDTO:
    """Get file count and total size, cached briefly for display.

    Owners without files are not cached so their first upload shows up
    immediately.

    Args:
        owner_id: Owner to report on.

    Returns:
        FileStatsDTO for the owner.
    """
    key = stats_cache_key(owner_id)
    stats = cache.get(key)
    if stats is not None:
        return stats

    files = File.objects.owned_by(owner_id)
    stats = FileStatsDTO(
        file_count=files.count(),
        total_size_bytes=files.total_size(),
    )
    if stats.file_count:
        cache.set(key, stats, timeout=settings.FILEGATE_USAGE_CACHE_TIMEOUT)
    return stats
