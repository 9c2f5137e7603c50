"""Django storage configuration for S3-compatible backends.

This module configures django-storages to work with:
- MinIO or LocalStack for local development
- AWS S3 (or any S3-compatible service) in production

All of them use the same ``FileStorage`` backend.
"""

from typing import Any, Final

from botocore.config import Config

from filegate.settings.components import config

# Per-call timeouts for the object store. botocore's own retries are
# disabled: ``FileStorage`` owns the retry policy.
_CLIENT_CONFIG: Final = Config(
    connect_timeout=config('AWS_S3_CONNECT_TIMEOUT', cast=float, default=5),
    read_timeout=config('AWS_S3_READ_TIMEOUT', cast=float, default=30),
    retries={'max_attempts': 1, 'mode': 'standard'},
    signature_version='s3v4',
)

# Storage configuration dictionary
# Uses S3-compatible storage for user files, local storage for static files
STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'filegate.apps.files.infrastructure.storage.FileStorage',
        'OPTIONS': {
            'bucket_name': config(
                'AWS_STORAGE_BUCKET_NAME',
                default='filegate',
            ),
            'access_key': config('AWS_ACCESS_KEY_ID', default=None),
            'secret_key': config('AWS_SECRET_ACCESS_KEY', default=None),
            'endpoint_url': config(
                'AWS_S3_ENDPOINT_URL',
                default=None,
            ),
            'region_name': config(
                'AWS_S3_REGION_NAME',
                default='us-east-1',
            ),
            'client_config': _CLIENT_CONFIG,
            'file_overwrite': True,  # Keys embed a UUID, never collide
            'default_acl': None,  # Inherit bucket ACL
            'querystring_auth': True,
        },
    },
    'staticfiles': {
        # Keep static files separate from user files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

# Retry policy applied to object puts and deletes
FILEGATE_STORAGE_RETRY_ATTEMPTS: Final = config(
    'FILEGATE_STORAGE_RETRY_ATTEMPTS',
    cast=int,
    default=3,
)
FILEGATE_STORAGE_RETRY_BASE_DELAY: Final = config(
    'FILEGATE_STORAGE_RETRY_BASE_DELAY',
    cast=float,
    default=1.0,
)
FILEGATE_STORAGE_RETRY_MULTIPLIER: Final = config(
    'FILEGATE_STORAGE_RETRY_MULTIPLIER',
    cast=float,
    default=2.0,
)
