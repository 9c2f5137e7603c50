"""Exceptions for files app."""

from django.core.exceptions import ValidationError


class UploadValidationError(ValidationError):
    """Raised when caller input is rejected before any store is touched."""

    default_code = 'invalid'

    def __init__(self, message: str, code: str | None = None) -> None:
        """Initialize UploadValidationError.

        Args:
            message: Human readable reason.
            code: Stable machine readable error code.
        """
        super().__init__(message, code=code or self.default_code)


class FileTooLargeError(UploadValidationError):
    """Raised when a single upload exceeds the per-file size limit."""

    default_code = 'file_too_large'

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        """Initialize FileTooLargeError.

        Args:
            size_bytes: Declared size of the upload.
            max_bytes: Configured maximum single-file size.
        """
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f'File size {size_bytes} bytes exceeds maximum allowed size '
            f'of {max_bytes} bytes',
        )


class EmptyFileError(UploadValidationError):
    """Raised when the uploaded payload has no bytes."""

    default_code = 'empty_file'

    def __init__(self) -> None:
        """Initialize EmptyFileError."""
        super().__init__('File cannot be empty')


class UnsupportedContentTypeError(UploadValidationError):
    """Raised when a content type is not in the allow-list."""

    default_code = 'unsupported_content_type'

    def __init__(self, content_type: str, allowed: list[str]) -> None:
        """Initialize UnsupportedContentTypeError.

        Args:
            content_type: Rejected content type.
            allowed: Configured allow-list patterns.
        """
        self.content_type = content_type
        self.allowed = allowed
        super().__init__(
            f"Content type '{content_type}' is not allowed. "
            f'Allowed types: {", ".join(allowed)}',
        )


class InvalidFilenameError(UploadValidationError):
    """Raised when a filename is missing or blank."""

    default_code = 'invalid_filename'

    def __init__(self) -> None:
        """Initialize InvalidFilenameError."""
        super().__init__('Filename cannot be null or empty')


class DuplicateFilenameError(UploadValidationError):
    """Raised when the owner already has a file with the same name."""

    default_code = 'duplicate_filename'

    def __init__(self, filename: str) -> None:
        """Initialize DuplicateFilenameError.

        Args:
            filename: Sanitized filename that collided.
        """
        self.filename = filename
        super().__init__(f"File with name '{filename}' already exists")


class InvalidPaginationError(UploadValidationError):
    """Raised for out of range page number or page size."""

    default_code = 'invalid_pagination'


class QuotaExceededError(Exception):
    """Raised when upload would exceed user's storage quota."""

    def __init__(
        self,
        quota_bytes: int,
        used_bytes: int,
        required_bytes: int,
    ) -> None:
        """Initialize QuotaExceededError.

        Args:
            quota_bytes: Total quota limit in bytes.
            used_bytes: Currently used bytes.
            required_bytes: Bytes needed for the operation.
        """
        self.quota_bytes = quota_bytes
        self.used_bytes = used_bytes
        self.required_bytes = required_bytes

        available = max(0, quota_bytes - used_bytes)
        super().__init__(
            f'Quota exceeded: need {required_bytes} bytes, '
            f'only {available} bytes available '
            f'(quota: {quota_bytes}, used: {used_bytes})',
        )


class StorageUnavailableError(Exception):
    """Raised when the object store keeps failing after all retries."""

    def __init__(self, key: str, operation: str) -> None:
        """Initialize StorageUnavailableError.

        Args:
            key: Object key the operation targeted.
            operation: Name of the failed operation (put, delete).
        """
        self.key = key
        self.operation = operation
        super().__init__(f'Object storage unavailable: {operation} {key}')
