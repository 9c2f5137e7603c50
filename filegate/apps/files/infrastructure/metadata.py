"""Filename, content type and object key helpers for files."""

import logging
import re
import time
import uuid
from collections.abc import Iterable
from typing import Final, final

from filegate.apps.files.exceptions import (
    InvalidFilenameError,
    UnsupportedContentTypeError,
)

MAX_FILENAME_LENGTH: Final = 255
DEFAULT_CONTENT_TYPE: Final = 'application/octet-stream'
OBJECT_KEY_ROOT: Final = 'users/'
# Column width of File.content_type, also the RFC 6838 limit
MAX_CONTENT_TYPE_LENGTH: Final = 255

_DANGEROUS_SEQUENCES: Final = ('..', '/', '\\', '\x00')
_UNSAFE_CHARS: Final = re.compile(r'[^A-Za-z0-9._-]')
_WILDCARD_SUFFIX: Final = '/*'

logger = logging.getLogger(__name__)


def placeholder_filename() -> str:
    """Generate a filename for uploads that carry no usable name.

    Returns:
        Name like 'file_1767225600000' (epoch milliseconds).
    """
    return f'file_{time.time_ns() // 1_000_000}'


def sanitize_filename(filename: str | None) -> str:
    """Turn a client supplied filename into a safe storage filename.

    Strips path traversal and separator sequences, trims whitespace and
    dots, replaces anything outside ``[A-Za-z0-9._-]`` with ``_`` and
    truncates to 255 characters keeping the extension. Sanitizing an
    already sanitized name returns it unchanged.

    Args:
        filename: Raw filename from the upload.

    Returns:
        Sanitized filename, never empty.

    Raises:
        InvalidFilenameError: If filename is None or blank.
    """
    if filename is None or not filename.strip():
        raise InvalidFilenameError()

    sanitized = _strip_dangerous_sequences(filename)
    sanitized = sanitized.strip().strip('.')
    sanitized = _UNSAFE_CHARS.sub('_', sanitized)
    sanitized = _truncate(sanitized)

    if not sanitized:
        sanitized = placeholder_filename()

    logger.debug('Sanitized filename: %r -> %s', filename, sanitized)
    return sanitized


def _strip_dangerous_sequences(filename: str) -> str:
    # Removing one sequence can join its neighbours into another ('./.'),
    # so repeat until nothing changes.
    previous = None
    while previous != filename:
        previous = filename
        for sequence in _DANGEROUS_SEQUENCES:
            filename = filename.replace(sequence, '')
    return filename


def _truncate(filename: str) -> str:
    if len(filename) <= MAX_FILENAME_LENGTH:
        return filename

    extension = get_file_extension(filename)
    if not extension or len(extension) >= MAX_FILENAME_LENGTH:
        return filename[:MAX_FILENAME_LENGTH].rstrip('.')

    stem = filename[:MAX_FILENAME_LENGTH - len(extension)].rstrip('.')
    return f'{stem}{extension}'


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    Args:
        filename: Filename (e.g., 'document.pdf').

    Returns:
        Extension including the dot (e.g., '.pdf').
        Returns empty string if there is no extension or the name
        starts with its only dot.
    """
    last_dot = filename.rfind('.')
    if last_dot <= 0:
        return ''
    return filename[last_dot:]


def resolve_content_type(content_type: str | None) -> str:
    """Fall back to the generic binary type when none was declared."""
    if content_type is None or not content_type.strip():
        return DEFAULT_CONTENT_TYPE
    return content_type.strip()


def build_object_key(
    owner_id: int,
    filename: str,
    file_uuid: uuid.UUID | None = None,
) -> str:
    """Build the storage key for a new file.

    Example: (42, 'report.pdf') -> 'users/42/files/<uuid4>-report.pdf'

    Args:
        owner_id: Owner's user ID.
        filename: Sanitized filename.
        file_uuid: Identifier to embed; a fresh UUID4 when omitted.

    Returns:
        Object key, unique because of the UUID component.
    """
    file_uuid = file_uuid or uuid.uuid4()
    return f'{owner_prefix(owner_id)}files/{file_uuid}-{filename}'


def owner_prefix(owner_id: int) -> str:
    """Key prefix under which all objects of one owner live."""
    return f'{OBJECT_KEY_ROOT}{owner_id}/'


@final
class ContentTypeValidator:
    """Validates content types against allowed patterns.

    Patterns are either exact types ('application/pdf') or wildcards
    over a top-level type ('image/*'). Matching is case-insensitive.
    """

    def __init__(self, allowed_patterns: str | Iterable[str]) -> None:
        """Initialize ContentTypeValidator.

        Args:
            allowed_patterns: Comma separated string or list of patterns.
        """
        if isinstance(allowed_patterns, str):
            allowed_patterns = allowed_patterns.split(',')
        self.allowed_patterns = [
            pattern.strip()
            for pattern in allowed_patterns
            if pattern.strip()
        ]

    def is_allowed(self, content_type: str | None) -> bool:
        """Check content type against every allowed pattern."""
        if content_type is None or not content_type.strip():
            return False
        if len(content_type.strip()) > MAX_CONTENT_TYPE_LENGTH:
            return False
        return any(
            _matches_pattern(content_type.strip(), pattern)
            for pattern in self.allowed_patterns
        )

    def validate(self, content_type: str | None) -> None:
        """Validate content type against allowed patterns.

        Args:
            content_type: Content type to validate.

        Raises:
            UnsupportedContentTypeError: If content type is blank, too
                long or not allowed.
        """
        if not self.is_allowed(content_type):
            logger.warning('Content type not allowed: %.100s', content_type)
            raise UnsupportedContentTypeError(
                content_type or '',
                self.allowed_patterns,
            )


def _matches_pattern(content_type: str, pattern: str) -> bool:
    content_type = content_type.lower()
    pattern = pattern.lower()

    if pattern.endswith(_WILDCARD_SUFFIX):
        # 'image/*' matches 'image/jpeg', 'image/png', ...
        base_type = pattern[:-len(_WILDCARD_SUFFIX)]
        return content_type.startswith(f'{base_type}/')
    return content_type == pattern
