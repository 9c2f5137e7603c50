"""Custom storage backend for S3-compatible storage."""

import logging
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from typing import Any, NamedTuple, TypeVar, final

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from storages.backends.s3 import S3Storage

from filegate.apps.files.exceptions import StorageUnavailableError
from filegate.apps.files.infrastructure.retry import RetryPolicy

_ResultT = TypeVar('_ResultT')

_NOT_FOUND_CODES = frozenset(('404', 'NoSuchKey', 'NotFound'))

logger = logging.getLogger(__name__)


class StoredObject(NamedTuple):
    """Key and modification time of an object found in the bucket."""

    key: str
    last_modified: datetime | None


@final
class FileStorage(S3Storage):
    """Custom S3 storage backend for user files.

    Extends django-storages S3Storage with:
    - Key addressed put/delete with retry-with-backoff
    - Fail-open existence checks
    - Presigned download URLs with caller chosen expiration
    - Best-effort rollback of uploads for the upload saga
    """

    def __init__(self, **options: Any) -> None:
        """Initialize storage and its retry policy from settings.

        Args:
            options: django-storages S3Storage options.
        """
        super().__init__(**options)
        self.retry_policy = RetryPolicy(
            max_attempts=settings.FILEGATE_STORAGE_RETRY_ATTEMPTS,
            base_delay=settings.FILEGATE_STORAGE_RETRY_BASE_DELAY,
            multiplier=settings.FILEGATE_STORAGE_RETRY_MULTIPLIER,
        )

    @property
    def client(self) -> Any:
        """Low level boto3 S3 client bound to this storage."""
        return self.connection.meta.client

    def put_object(self, key: str, content: bytes, content_type: str) -> None:
        """Upload bytes under key, overwriting any previous object.

        Args:
            key: Object key.
            content: Full object payload.
            content_type: MIME type stored with the object.

        Raises:
            StorageUnavailableError: If the upload keeps failing.
        """
        logger.info('Uploading object: %s (%d bytes)', key, len(content))
        self._call(
            'put',
            key,
            lambda: self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=content_type,
                ContentLength=len(content),
            ),
        )
        logger.info('Successfully uploaded object: %s', key)

    def delete_object(self, key: str) -> None:
        """Delete object by key. Deleting an absent key is a no-op.

        Args:
            key: Object key.

        Raises:
            StorageUnavailableError: If the delete keeps failing.
        """
        logger.info('Deleting object: %s', key)
        self._call(
            'delete',
            key,
            lambda: self.client.delete_object(
                Bucket=self.bucket_name,
                Key=key,
            ),
        )
        logger.info('Successfully deleted object: %s', key)

    def object_exists(self, key: str) -> bool:
        """Check whether an object exists.

        The check is advisory: any error other than not-found is logged
        and reported as a missing object.

        Args:
            key: Object key.

        Returns:
            True if the backend confirmed the object exists.
        """
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as error:
            code = error.response.get('Error', {}).get('Code', '')
            if code not in _NOT_FOUND_CODES:
                logger.exception('Error checking object existence: %s', key)
            return False
        except BotoCoreError:
            logger.exception('Error checking object existence: %s', key)
            return False
        return True

    def presigned_download_url(self, key: str, expiration: timedelta) -> str:
        """Sign a time-limited GET URL for one object.

        Signing happens locally; the backend is not contacted.

        Args:
            key: Object key.
            expiration: How long the URL stays valid.

        Returns:
            Presigned URL.
        """
        return self.url(key, expire=int(expiration.total_seconds()))

    def list_object_keys(self, prefix: str) -> Iterator[StoredObject]:
        """Iterate over every object whose key starts with prefix.

        Args:
            prefix: Key prefix (e.g., 'users/').

        Yields:
            StoredObject for each key found.
        """
        paginator = self.client.get_paginator('list_objects_v2')
        pages = paginator.paginate(Bucket=self.bucket_name, Prefix=prefix)
        for page in pages:
            for entry in page.get('Contents', []):
                yield StoredObject(
                    key=entry['Key'],
                    last_modified=entry.get('LastModified'),
                )

    def rollback_upload(self, key: str) -> None:
        """Delete uploaded object for a failed upload.

        This is a best-effort operation - if deletion fails, the error
        is logged but not raised. The object stays in the bucket as an
        orphan until ``reclaim_orphans`` removes it.

        Args:
            key: Object key to delete.
        """
        try:
            logger.warning('Rolling back upload, deleting object: %s', key)
            self.delete_object(key)
        except Exception:
            logger.exception('Failed to rollback upload, orphaned object: %s', key)

    def _call(
        self,
        operation: str,
        key: str,
        request: Callable[[], _ResultT],
    ) -> _ResultT:
        try:
            return self.retry_policy.call(
                request,
                description=f'Object {operation} {key}',
            )
        except (BotoCoreError, ClientError) as error:
            logger.exception('Object %s failed after retries: %s', operation, key)
            raise StorageUnavailableError(key, operation) from error
