"""Shared fixtures for files app tests."""

import boto3
import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from moto import mock_aws

from filegate.apps.files.models import File

User = get_user_model()

_BUCKET = 'filegate'


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so boto3 never picks up real ones."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture(autouse=True)
def clear_cache():
    """Start every test with an empty display cache.

    Yields:
        Nothing; clears again on teardown.
    """
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def mock_s3():
    """Mock S3 service with filegate bucket.

    Yields:
        boto3 S3 resource with filegate bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket=_BUCKET)
        yield conn


@pytest.fixture
def bucket(mock_s3):
    """The mocked filegate bucket.

    Returns:
        boto3 Bucket resource.
    """
    return mock_s3.Bucket(_BUCKET)


@pytest.fixture
def small_limits(settings):
    """Shrink size limits to byte scale.

    Returns:
        The overridden settings.
    """
    settings.FILEGATE_MAX_FILE_SIZE = 60
    settings.FILEGATE_MAX_TOTAL_SIZE = 100
    return settings


@pytest.fixture
def make_file(db):
    """Factory for file records without stored bytes.

    Returns:
        Callable creating File rows.
    """

    def factory(owner, filename='test.txt', **fields):
        fields.setdefault('size_bytes', 10)
        fields.setdefault('content_type', 'text/plain')
        fields.setdefault(
            'object_key',
            f'users/{owner.pk}/files/00000000-{filename}',
        )
        return File.objects.create(owner=owner, filename=filename, **fields)

    return factory
