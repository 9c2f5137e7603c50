"""This file contains all the settings used in production.

This file is required and if development.py is present these
values are overridden.
"""

from django.core.exceptions import ImproperlyConfigured

from filegate.settings.components.common import SECRET_KEY

# Production flags:
DEBUG = False

if not SECRET_KEY:
    raise ImproperlyConfigured('DJANGO_SECRET_KEY must be set in production')

SECURE_CONTENT_TYPE_NOSNIFF = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
