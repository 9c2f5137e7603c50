"""Retry-with-backoff policy for calls to the object store."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar, final

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

_ResultT = TypeVar('_ResultT')

# Error codes S3 uses for throttling and server side hiccups
_TRANSIENT_ERROR_CODES = frozenset((
    'InternalError',
    'RequestTimeout',
    'ServiceUnavailable',
    'SlowDown',
    'Throttling',
    'ThrottlingException',
))

_TRANSPORT_ERRORS = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

_SERVER_ERROR_STATUS = 500

logger = logging.getLogger(__name__)


def is_transient_storage_error(error: BaseException) -> bool:
    """Decide whether an object store error is worth retrying.

    Transport failures, throttling and 5xx responses are transient.
    Authorization and not-found responses are not.

    Args:
        error: Exception raised by a boto3 call.

    Returns:
        True if the call should be attempted again.
    """
    if isinstance(error, _TRANSPORT_ERRORS):
        return True
    if isinstance(error, ClientError):
        code = error.response.get('Error', {}).get('Code', '')
        status = error.response.get(
            'ResponseMetadata', {},
        ).get('HTTPStatusCode', 0)
        return code in _TRANSIENT_ERROR_CODES or status >= _SERVER_ERROR_STATUS
    return False


@final
@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    Attempt ``n`` (1-based) that fails with a retryable error is followed
    by a pause of ``base_delay * multiplier ** (n - 1)`` seconds, until
    ``max_attempts`` calls have been made.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    retryable: Callable[[BaseException], bool] = is_transient_storage_error
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        """Validate policy parameters."""
        if self.max_attempts < 1:
            raise ValueError('max_attempts must be at least 1')
        if self.base_delay < 0:
            raise ValueError('base_delay must be non-negative')
        if self.multiplier < 1:
            raise ValueError('multiplier must be at least 1')

    def delay_for(self, attempt: int) -> float:
        """Pause after the given failed attempt, in seconds."""
        return self.base_delay * self.multiplier ** (attempt - 1)

    def call(
        self,
        operation: Callable[[], _ResultT],
        description: str = 'operation',
    ) -> _ResultT:
        """Run operation, retrying retryable failures.

        Args:
            operation: Zero-argument callable to run.
            description: Text used in log records.

        Returns:
            Whatever operation returns.

        Raises:
            Exception: The last error, once it is not retryable or the
                attempts are exhausted.
        """
        attempt = 1
        while True:
            try:
                return operation()
            except Exception as error:
                if attempt >= self.max_attempts or not self.retryable(error):
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    '%s failed (attempt %d/%d), retrying in %.1fs: %s',
                    description,
                    attempt,
                    self.max_attempts,
                    delay,
                    error,
                )
                self.sleep(delay)
                attempt += 1
