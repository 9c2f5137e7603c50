"""Upload limits and download link settings for the files app."""

from typing import Final

from decouple import Csv

from filegate.settings.components import config

_MEGABYTE: Final = 1024 * 1024

# Largest single upload, in bytes
FILEGATE_MAX_FILE_SIZE: Final = config(
    'FILEGATE_MAX_FILE_SIZE',
    cast=int,
    default=100 * _MEGABYTE,
)

# Largest aggregate size of all files of one user, in bytes
FILEGATE_MAX_TOTAL_SIZE: Final = config(
    'FILEGATE_MAX_TOTAL_SIZE',
    cast=int,
    default=1024 * _MEGABYTE,
)

# Exact types or `type/*` wildcards, matched case-insensitively
FILEGATE_ALLOWED_CONTENT_TYPES: Final = config(
    'FILEGATE_ALLOWED_CONTENT_TYPES',
    cast=Csv(),
    default=(
        'image/*,application/pdf,application/zip,'
        'text/*,application/octet-stream'
    ),
)

FILEGATE_PRESIGNED_URL_EXPIRATION_MINUTES: Final = config(
    'FILEGATE_PRESIGNED_URL_EXPIRATION_MINUTES',
    cast=int,
    default=60,
)

# Seconds a usage/stats figure may be served from cache (display only)
FILEGATE_USAGE_CACHE_TIMEOUT: Final = config(
    'FILEGATE_USAGE_CACHE_TIMEOUT',
    cast=int,
    default=30,
)
