"""Cache configuration.

Only display data (storage usage, file stats) is cached. Quota admission
never reads from the cache.
"""

from filegate.settings.components import config

CACHES = {
    'default': {
        'BACKEND': config(
            'DJANGO_CACHE_BACKEND',
            default='django.core.cache.backends.locmem.LocMemCache',
        ),
        'LOCATION': config('DJANGO_CACHE_LOCATION', default='filegate'),
    },
}
