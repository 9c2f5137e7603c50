"""Business logic for file operations.

Atomicity strategy across the database and object storage:

- Upload: metadata row first (committed together with the quota lock),
  object bytes second. If the object write fails, the row is deleted
  again (compensating action), so no row ever points at missing bytes.
- Delete: metadata row first, which is the user visible act. Object
  removal runs once that transaction commits and is best effort;
  failures leave an orphan object, which nothing references and
  ``reclaim_orphans`` can clean up.
"""

import logging
from datetime import timedelta
from functools import partial
from typing import TYPE_CHECKING, Final

from django.conf import settings
from django.core.files.storage import default_storage
from django.db import IntegrityError, transaction
from django.utils import timezone

from filegate.apps.files.dto import BulkDeleteResult, DownloadLinkDTO, FileDTO
from filegate.apps.files.exceptions import (
    DuplicateFilenameError,
    EmptyFileError,
    FileTooLargeError,
    UploadValidationError,
)
from filegate.apps.files.infrastructure.metadata import (
    ContentTypeValidator,
    build_object_key,
    placeholder_filename,
    resolve_content_type,
    sanitize_filename,
)
from filegate.apps.files.logic.quota_operations import (
    check_and_reserve,
    evict_usage_cache,
)
from filegate.apps.files.models import File

if TYPE_CHECKING:
    from filegate.apps.files.infrastructure.storage import FileStorage

_SIZE_MISMATCH: Final = 'size_mismatch'

logger = logging.getLogger(__name__)


def _get_storage() -> 'FileStorage':
    """Get the configured default storage backend.

    Returns:
        FileStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]


def _get_content_type_validator() -> ContentTypeValidator:
    return ContentTypeValidator(settings.FILEGATE_ALLOWED_CONTENT_TYPES)


def upload_file(  # noqa: WPS210
    owner_id: int,
    content: bytes,
    content_type: str | None,
    filename: str | None,
    size_bytes: int | None = None,
) -> FileDTO:
    """Validate, admit and store a new file.

    Steps, each a precondition for the next: size checks, content type
    check, filename sanitizing and duplicate check, locked quota
    admission plus metadata insert in one transaction, then the object
    write. A failed or interrupted object write deletes the metadata row
    again before the error propagates.

    Args:
        owner_id: Authenticated owner of the new file.
        content: Full file payload.
        content_type: Declared MIME type; blank means octet-stream.
        filename: Declared filename; blank gets a generated name.
        size_bytes: Declared size; defaults to the payload length.

    Returns:
        FileDTO of the stored file.

    Raises:
        UploadValidationError: If size, content type or name is rejected.
        QuotaExceededError: If upload would exceed the owner's quota.
        StorageUnavailableError: If the object store kept failing.
    """
    declared_size = len(content) if size_bytes is None else size_bytes
    _validate_size(declared_size, content)

    content_type = resolve_content_type(content_type)
    _get_content_type_validator().validate(content_type)

    if filename is None or not filename.strip():
        filename = placeholder_filename()
    filename = sanitize_filename(filename)

    # Advisory: the unique constraint catches concurrent duplicates
    if _filename_taken(owner_id, filename):
        raise DuplicateFilenameError(filename)

    object_key = build_object_key(owner_id, filename)

    # Step 1: Quota admission and metadata row in one transaction
    try:
        with transaction.atomic():
            check_and_reserve(owner_id, declared_size)
            file_instance = File.objects.create(
                owner_id=owner_id,
                filename=filename,
                object_key=object_key,
                size_bytes=declared_size,
                content_type=content_type,
            )
    except IntegrityError as error:
        # Only a lost race on the name is a duplicate, e.g. a missing
        # owner row must surface as is
        if not _filename_taken(owner_id, filename):
            raise
        logger.warning(
            'Concurrent upload won the name %s for owner %d',
            filename,
            owner_id,
        )
        raise DuplicateFilenameError(filename) from error

    logger.info(
        'File record created in database: %s (ID: %d)',
        filename,
        file_instance.pk,
    )

    # Step 2: Object bytes, outside the metadata transaction
    storage = _get_storage()
    try:
        storage.put_object(object_key, content, content_type)
    except BaseException:
        # Also covers interruption, so a cancelled request cannot
        # leave a row without bytes behind.
        logger.exception(
            'Object upload failed for file %d, rolling back record',
            file_instance.pk,
        )
        _compensate_upload(storage, file_instance)
        raise

    evict_usage_cache(owner_id)
    logger.info(
        'File uploaded successfully: %s for owner %d (%d bytes)',
        filename,
        owner_id,
        declared_size,
    )
    return FileDTO.from_model(file_instance)


def _filename_taken(owner_id: int, filename: str) -> bool:
    return File.objects.owned_by(owner_id).filter(filename=filename).exists()


def _validate_size(declared_size: int, content: bytes) -> None:
    max_file_size = settings.FILEGATE_MAX_FILE_SIZE
    if declared_size > max_file_size:
        raise FileTooLargeError(declared_size, max_file_size)
    if not content:
        raise EmptyFileError()
    if declared_size != len(content):
        raise UploadValidationError(
            f'Declared size {declared_size} does not match '
            f'payload length {len(content)}',
            code=_SIZE_MISMATCH,
        )


def _compensate_upload(storage: 'FileStorage', file_instance: File) -> None:
    """Undo a committed upload whose object write did not succeed."""
    try:
        with transaction.atomic():
            File.objects.filter(pk=file_instance.pk).delete()
    except Exception:
        logger.exception(
            'Failed to delete record of failed upload: ID=%d',
            file_instance.pk,
        )
        raise
    logger.info('Rolled back file record: ID=%d', file_instance.pk)

    # The write may have landed partially or after a timeout
    storage.rollback_upload(file_instance.object_key)


def delete_file(owner_id: int, file_id: int) -> None:
    """Delete file from database, then from storage (best effort).

    Object removal is deferred until the deleting transaction commits,
    so a rolled back caller transaction keeps both row and bytes, and
    no row lock is held while storage is contacted.

    Args:
        owner_id: Authenticated caller; must own the file.
        file_id: ID of file to delete.

    Raises:
        File.DoesNotExist: If file doesn't exist or belongs to someone
            else.
    """
    file_instance = File.objects.owned_by(owner_id).get(pk=file_id)
    object_keys = file_instance.object_keys()

    logger.info(
        'Deleting file: ID=%d, key=%s',
        file_id,
        file_instance.object_key,
    )

    with transaction.atomic():
        file_instance.delete()
        transaction.on_commit(
            partial(
                _remove_objects,
                object_keys,
                BulkDeleteResult(deleted_records=1),
            ),
        )
    logger.info('File record deleted from database: ID=%d', file_id)

    evict_usage_cache(owner_id)


def delete_all_user_files(owner_id: int) -> BulkDeleteResult:
    """Delete every file of an owner (account teardown).

    All rows go first in one transaction. Each object is removed best
    effort after that transaction commits; failures are counted, never
    raised. Called outside a transaction the returned tally is final,
    inside one its object counts are filled in on commit.

    Args:
        owner_id: Owner whose files are removed.

    Returns:
        BulkDeleteResult with database and object tallies.
    """
    logger.info('Deleting all files for owner %d', owner_id)

    with transaction.atomic():
        files = list(
            File.objects.owned_by(owner_id).select_for_update().order_by('pk'),
        )
        deleted_records, _ = File.objects.filter(
            pk__in=[file_instance.pk for file_instance in files],
        ).delete()
        result = BulkDeleteResult(deleted_records=deleted_records)
        object_keys = [
            key
            for file_instance in files
            for key in file_instance.object_keys()
        ]
        transaction.on_commit(
            partial(_finish_teardown, owner_id, object_keys, result),
        )

    evict_usage_cache(owner_id)
    return result


def _finish_teardown(
    owner_id: int,
    object_keys: list[str],
    result: BulkDeleteResult,
) -> None:
    _remove_objects(object_keys, result)
    logger.info(
        'Deleted %d files from database, %d objects from storage '
        '(%d storage failures) for owner %d',
        result.deleted_records,
        result.deleted_objects,
        result.failed_objects,
        owner_id,
    )
    if result.failed_objects:
        logger.warning(
            'Account teardown left %d orphaned objects for owner %d',
            result.failed_objects,
            owner_id,
        )


def _remove_objects(object_keys: list[str], tally: BulkDeleteResult) -> None:
    storage = _get_storage()
    for key in object_keys:
        if _discard_object(storage, key):
            tally.deleted_objects += 1
        else:
            tally.failed_objects += 1


def _discard_object(storage: 'FileStorage', key: str) -> bool:
    """Delete one object, logging instead of raising on failure."""
    try:
        storage.delete_object(key)
    except Exception:
        # Log but don't raise - the record is gone, the object is orphaned
        logger.exception(
            'Failed to delete object after record deletion (orphaned): %s',
            key,
        )
        return False
    return True


def get_download_url(
    owner_id: int,
    file_id: int,
    expiration: timedelta | None = None,
) -> DownloadLinkDTO:
    """Create a presigned, time-limited download link.

    Args:
        owner_id: Authenticated caller; must own the file.
        file_id: ID of the file.
        expiration: Validity of the link; configured default if None.

    Returns:
        DownloadLinkDTO with URL and expiry time.

    Raises:
        File.DoesNotExist: If file doesn't exist or belongs to someone
            else.
    """
    file_instance = File.objects.owned_by(owner_id).get(pk=file_id)
    if expiration is None:
        expiration = timedelta(
            minutes=settings.FILEGATE_PRESIGNED_URL_EXPIRATION_MINUTES,
        )

    url = _get_storage().presigned_download_url(
        file_instance.object_key,
        expiration,
    )
    logger.debug('Issued download link for file %d', file_id)
    return DownloadLinkDTO(
        download_url=url,
        expires_at=timezone.now() + expiration,
    )
