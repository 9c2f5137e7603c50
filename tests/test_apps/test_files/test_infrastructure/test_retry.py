"""Tests for the object store retry policy."""

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from filegate.apps.files.infrastructure.retry import (
    RetryPolicy,
    is_transient_storage_error,
)


def _client_error(code, status):
    return ClientError(
        {
            'Error': {'Code': code, 'Message': code},
            'ResponseMetadata': {'HTTPStatusCode': status},
        },
        'PutObject',
    )


class _FlakyOperation:
    """Fails the first ``failures`` calls, then returns 'done'."""

    def __init__(self, failures, error):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return 'done'


@pytest.fixture
def sleeps():
    """Recorded pauses instead of real sleeping.

    Returns:
        List that collects requested delays.
    """
    return []


@pytest.fixture
def policy(sleeps):
    """Default policy with recorded sleeps.

    Returns:
        RetryPolicy with 3 attempts, 1s base delay, factor 2.
    """
    return RetryPolicy(sleep=sleeps.append)


@pytest.mark.parametrize(('error', 'expected'), [
    (EndpointConnectionError(endpoint_url='http://s3'), True),
    (_client_error('SlowDown', 503), True),
    (_client_error('InternalError', 500), True),
    (_client_error('Whatever', 502), True),
    (_client_error('AccessDenied', 403), False),
    (_client_error('NoSuchKey', 404), False),
    (ValueError('boom'), False),
])
def test_is_transient_storage_error(error, expected):
    """Test classification of storage errors."""
    assert is_transient_storage_error(error) is expected


def test_call_succeeds_first_time(policy, sleeps):
    """Test no pause when the first attempt works."""
    operation = _FlakyOperation(0, _client_error('SlowDown', 503))

    assert policy.call(operation) == 'done'
    assert operation.calls == 1
    assert sleeps == []


def test_call_recovers_from_transient_failures(policy, sleeps):
    """Test two transient failures then success, with backoff."""
    operation = _FlakyOperation(2, _client_error('SlowDown', 503))

    assert policy.call(operation) == 'done'
    assert operation.calls == 3
    assert sleeps == [1.0, 2.0]


def test_call_gives_up_after_max_attempts(policy, sleeps):
    """Test the last error is raised once attempts are exhausted."""
    error = _client_error('ServiceUnavailable', 503)
    operation = _FlakyOperation(5, error)

    with pytest.raises(ClientError) as exc_info:
        policy.call(operation)

    assert exc_info.value is error
    assert operation.calls == 3
    assert sleeps == [1.0, 2.0]


def test_call_does_not_retry_permanent_errors(policy, sleeps):
    """Test authorization errors fail immediately."""
    operation = _FlakyOperation(1, _client_error('AccessDenied', 403))

    with pytest.raises(ClientError):
        policy.call(operation)

    assert operation.calls == 1
    assert sleeps == []


def test_delay_for():
    """Test exponential delays."""
    policy = RetryPolicy(base_delay=0.5, multiplier=3.0)

    assert policy.delay_for(1) == 0.5
    assert policy.delay_for(2) == 1.5
    assert policy.delay_for(3) == 4.5


@pytest.mark.parametrize('options', [
    {'max_attempts': 0},
    {'base_delay': -1.0},
    {'multiplier': 0.5},
])
def test_policy_rejects_invalid_parameters(options):
    """Test invalid parameters fail at construction."""
    with pytest.raises(ValueError, match='must be'):
        RetryPolicy(**options)
