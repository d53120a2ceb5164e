"""Retry policy for opening files.

A policy retries an open a bounded number of times with a constant delay
between attempts. Only I/O errors that can clear up on their own, such as
sharing violations, are retried; a missing file or an over-long path
fails on the first attempt. The error that finally propagates is always
the original one.

Built on tenacity. Both openers in fileguard.streams share
create_retry_policy(); the policy hands out a fresh tenacity controller
per call so nothing is shared across calls.
"""

from __future__ import annotations

import asyncio
import errno
import os
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from functools import partial
from typing import TYPE_CHECKING, Any, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from fileguard.logging import Loggers

if TYPE_CHECKING:
    from fileguard.streams import OpenRequest


# Not-found conditions never clear up by waiting
NON_RETRYABLE_ERRORS: tuple[type[OSError], ...] = (
    FileNotFoundError,
    NotADirectoryError,
    IsADirectoryError,
)

# Windows system error codes
ERROR_SHARING_VIOLATION = 32
ERROR_LOCK_VIOLATION = 33
ERROR_FILENAME_EXCED_RANGE = 206

WINDOWS_SHARING_ERRORS = {ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION}


def is_path_too_long(error: OSError) -> bool:
    """Check if an OSError reports a path or file name that is too long."""
    return (
        error.errno == errno.ENAMETOOLONG
        or getattr(error, "winerror", None) == ERROR_FILENAME_EXCED_RANGE
    )


def is_retryable_error(error: BaseException) -> bool:
    """Check if an open failure should be retried.

    Every OSError is retried except file-not-found, directory-not-found and
    path-too-long. PermissionError is retried only on Windows, where it is
    how sharing and lock violations surface; on POSIX it means access
    denied. Anything that is not an OSError is never retried.

    Args:
        error: Exception raised by an open attempt

    Returns:
        True if the open should be attempted again
    """
    if not isinstance(error, OSError):
        return False
    if isinstance(error, NON_RETRYABLE_ERRORS) or is_path_too_long(error):
        return False
    if isinstance(error, PermissionError):
        winerror = getattr(error, "winerror", None)
        if winerror is None:
            # os.open() on Windows reports a sharing violation as a bare EACCES
            return os.name == "nt"
        return winerror in WINDOWS_SHARING_ERRORS
    return True


def to_seconds(delay: float | timedelta) -> float:
    """Normalize a delay given as seconds or timedelta."""
    if isinstance(delay, timedelta):
        return delay.total_seconds()
    return float(delay)


@dataclass
class RetryPolicy:
    """Constant-backoff retry policy for file opens.

    Attributes:
        retry_count: Retries allowed after the first attempt
        delay: Seconds to wait between attempts
        on_retry: Optional callback invoked with the number of the attempt
            that just failed (0 for the first attempt), before waiting
        logger: structlog-style logger receiving one warning per retry
    """

    retry_count: int
    delay: float
    on_retry: Callable[[int], None] | None = None
    logger: Any = field(default_factory=Loggers.io)

    def __post_init__(self) -> None:
        self.delay = to_seconds(self.delay)
        if self.retry_count < 0:
            raise ValueError(f"retry_count must be >= 0, got {self.retry_count}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.logger is None:
            self.logger = Loggers.io()

    @property
    def max_attempts(self) -> int:
        """Total attempts including the first one."""
        return self.retry_count + 1

    def _before_sleep(self, request: OpenRequest, retry_state: RetryCallState) -> None:
        # zero-based: the first retry reports 0
        attempt = retry_state.attempt_number - 1
        delay = retry_state.next_action.sleep if retry_state.next_action else self.delay
        error = retry_state.outcome.exception() if retry_state.outcome else None

        if self.on_retry is not None:
            self.on_retry(attempt)

        self.logger.warning(
            "file_open_retry",
            attempt=attempt,
            file=request.name,
            action=request.action,
            delay_ms=round(delay * 1000),
            error_type=type(error).__name__ if error else None,
            error=str(error) if error else None,
        )

    def _controller_kwargs(self, request: OpenRequest) -> dict[str, Any]:
        return {
            "stop": stop_after_attempt(self.max_attempts),
            "wait": wait_fixed(self.delay),
            "retry": retry_if_exception(is_retryable_error),
            "before_sleep": partial(self._before_sleep, request),
            "reraise": True,
        }

    def retrying(
        self,
        request: OpenRequest,
        cancel_event: threading.Event | None = None,
    ) -> Retrying:
        """Create a blocking tenacity controller for one open request.

        The wait between attempts ends early when cancel_event is set.
        """
        if cancel_event is None:
            sleep = time.sleep
        else:
            sleep = cancel_event.wait
        return Retrying(sleep=sleep, **self._controller_kwargs(request))

    def async_retrying(
        self,
        request: OpenRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncRetrying:
        """Create an asyncio tenacity controller for one open request.

        Waiting suspends the task only; the wait ends early when
        cancel_event is set.
        """
        if cancel_event is None:
            sleep = asyncio.sleep
        else:
            sleep = partial(_wait_or_cancel, cancel_event)
        return AsyncRetrying(sleep=sleep, **self._controller_kwargs(request))


async def _wait_or_cancel(cancel_event: asyncio.Event, seconds: float) -> None:
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


def create_retry_policy(
    retry_count: int,
    delay: float | timedelta,
    on_retry: Callable[[int], None] | None = None,
    logger: Any = None,
) -> RetryPolicy:
    """Build the retry policy shared by the file openers.

    Args:
        retry_count: Retries allowed after the first attempt
        delay: Constant delay between attempts, seconds or timedelta
        on_retry: Optional callback invoked with the failed attempt number
        logger: Logger for retry warnings (defaults to the fileguard.io logger)

    Returns:
        Configured RetryPolicy

    Raises:
        ValueError: If retry_count or delay is negative
    """
    return RetryPolicy(
        retry_count=retry_count,
        delay=to_seconds(delay),
        on_retry=on_retry,
        logger=logger if logger is not None else Loggers.io(),
    )
