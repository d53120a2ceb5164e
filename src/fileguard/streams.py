"""Open file streams with retry on transient sharing violations.

Provides:
- open_shared_read_stream_with_retry: Read-only stream, other readers allowed
- open_exclusive_read_write_stream_with_retry: Read-write stream, no other holders
- async_open_shared_read_stream_with_retry / async_open_exclusive_read_write_stream_with_retry:
  Coroutine variants that suspend the task instead of the thread between attempts

Arguments left as None fall back to the current settings (see fileguard.config).

Example:
    with open_shared_read_stream_with_retry("report.csv", retry_count=5, delay=0.2) as f:
        data = f.read()
"""

from __future__ import annotations

import asyncio
import contextlib
import errno
import os
import stat
import threading
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable

from fileguard.config import get_settings
from fileguard.exceptions import OperationCancelledError
from fileguard.locking import lock_file
from fileguard.retry import RetryPolicy, create_retry_policy


class FileAccessMode(Enum):
    """How an opened stream shares the file with other holders."""

    SHARED_READ = "shared-read"
    EXCLUSIVE_READ_WRITE = "exclusive-readwrite"


@dataclass
class OpenRequest:
    """A single file-open operation.

    Attributes:
        path: File to open
        buffer_size: Buffer size passed to the stream (0 = unbuffered, -1 = default)
        access: Access mode to open with
        flags: Extra os.open flags (e.g. os.O_SYNC)
        is_async: Whether the request comes from a coroutine opener
    """

    path: Path
    buffer_size: int
    access: FileAccessMode
    flags: int = 0
    is_async: bool = False

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if self.buffer_size < -1:
            raise ValueError(f"buffer_size must be >= -1, got {self.buffer_size}")

    @property
    def name(self) -> str:
        """File name used in logs and errors."""
        return str(self.path)

    @property
    def action(self) -> str:
        """Label describing the open, e.g. "open-async-shared-read"."""
        prefix = "open-async-" if self.is_async else "open-"
        return prefix + self.access.value

    @property
    def exclusive(self) -> bool:
        return self.access is FileAccessMode.EXCLUSIVE_READ_WRITE


def open_stream(request: OpenRequest) -> BinaryIO:
    """Perform one open attempt, without retry.

    Shared read opens an existing file read-only under a shared lock.
    Exclusive read-write opens or creates the file under an exclusive lock.

    Args:
        request: The open request

    Returns:
        Open binary stream; closing it releases the lock

    Raises:
        OSError: If the file cannot be opened or locked
    """
    if request.exclusive:
        os_flags = os.O_RDWR | os.O_CREAT
        mode = "r+b"
    else:
        os_flags = os.O_RDONLY
        mode = "rb"
    os_flags |= getattr(os, "O_BINARY", 0) | request.flags

    fd = os.open(request.path, os_flags, 0o666)
    try:
        if stat.S_ISDIR(os.fstat(fd).st_mode):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), request.name)
        lock_file(fd, exclusive=request.exclusive, path=request.name)
        return os.fdopen(fd, mode, buffering=request.buffer_size)
    except Exception:
        # fdopen may already have closed fd on its own failure path
        with contextlib.suppress(OSError):
            os.close(fd)
        raise


def _raise_if_cancelled(
    cancel_event: threading.Event | asyncio.Event | None,
    request: OpenRequest,
    attempts: int,
) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError(request.name, attempts)


def _prepare(
    path: str | os.PathLike[str],
    access: FileAccessMode,
    buffer_size: int | None,
    retry_count: int | None,
    delay: float | timedelta | None,
    flags: int,
    logger: Any,
    on_retry: Callable[[int], None] | None,
    is_async: bool,
) -> tuple[OpenRequest, RetryPolicy]:
    settings = get_settings()
    request = OpenRequest(
        path=Path(path),
        buffer_size=settings.buffer_size if buffer_size is None else buffer_size,
        access=access,
        flags=flags,
        is_async=is_async,
    )
    policy = create_retry_policy(
        retry_count=settings.retry_count if retry_count is None else retry_count,
        delay=settings.retry_delay if delay is None else delay,
        on_retry=on_retry,
        logger=logger,
    )
    return request, policy


def _open_with_retry(
    request: OpenRequest,
    policy: RetryPolicy,
    cancel_event: threading.Event | None,
) -> BinaryIO:
    for attempt in policy.retrying(request, cancel_event):
        with attempt:
            _raise_if_cancelled(cancel_event, request, attempt.retry_state.attempt_number - 1)
            stream = open_stream(request)
    return stream


async def _async_open_with_retry(
    request: OpenRequest,
    policy: RetryPolicy,
    cancel_event: asyncio.Event | None,
) -> BinaryIO:
    async for attempt in policy.async_retrying(request, cancel_event):
        with attempt:
            _raise_if_cancelled(cancel_event, request, attempt.retry_state.attempt_number - 1)
            stream = open_stream(request)
    return stream


def open_shared_read_stream_with_retry(
    path: str | os.PathLike[str],
    buffer_size: int | None = None,
    retry_count: int | None = None,
    delay: float | timedelta | None = None,
    flags: int = 0,
    logger: Any = None,
    on_retry: Callable[[int], None] | None = None,
    cancel_event: threading.Event | None = None,
) -> BinaryIO:
    """Open a file for shared reading, retrying on sharing violations.

    Other shared readers are allowed; an exclusive holder causes a retry.

    Args:
        path: File to open (must exist)
        buffer_size: Stream buffer size
        retry_count: Retries after the first attempt
        delay: Constant delay between attempts, seconds or timedelta
        flags: Extra os.open flags
        logger: Logger for retry warnings
        on_retry: Called with the failed attempt number before each retry
        cancel_event: When set, aborts before the next attempt

    Returns:
        Binary stream opened for reading

    Raises:
        FileNotFoundError: If the file does not exist (no retry)
        OSError: The last sharing violation once retries are exhausted
        OperationCancelledError: If cancel_event is set between attempts
    """
    request, policy = _prepare(
        path, FileAccessMode.SHARED_READ, buffer_size, retry_count, delay,
        flags, logger, on_retry, is_async=False,
    )
    return _open_with_retry(request, policy, cancel_event)


def open_exclusive_read_write_stream_with_retry(
    path: str | os.PathLike[str],
    buffer_size: int | None = None,
    retry_count: int | None = None,
    delay: float | timedelta | None = None,
    flags: int = 0,
    logger: Any = None,
    on_retry: Callable[[int], None] | None = None,
    cancel_event: threading.Event | None = None,
) -> BinaryIO:
    """Open or create a file for exclusive read-write, retrying on sharing violations.

    Any other holder of the file causes a retry. Arguments are the same as
    for open_shared_read_stream_with_retry(); the file is created if missing.
    """
    request, policy = _prepare(
        path, FileAccessMode.EXCLUSIVE_READ_WRITE, buffer_size, retry_count, delay,
        flags, logger, on_retry, is_async=False,
    )
    return _open_with_retry(request, policy, cancel_event)


async def async_open_shared_read_stream_with_retry(
    path: str | os.PathLike[str],
    buffer_size: int | None = None,
    retry_count: int | None = None,
    delay: float | timedelta | None = None,
    flags: int = 0,
    logger: Any = None,
    on_retry: Callable[[int], None] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> BinaryIO:
    """Coroutine variant of open_shared_read_stream_with_retry().

    Waits between attempts with asyncio, so other tasks keep running.
    Cancelling the task while it waits raises asyncio.CancelledError.
    """
    request, policy = _prepare(
        path, FileAccessMode.SHARED_READ, buffer_size, retry_count, delay,
        flags, logger, on_retry, is_async=True,
    )
    return await _async_open_with_retry(request, policy, cancel_event)


async def async_open_exclusive_read_write_stream_with_retry(
    path: str | os.PathLike[str],
    buffer_size: int | None = None,
    retry_count: int | None = None,
    delay: float | timedelta | None = None,
    flags: int = 0,
    logger: Any = None,
    on_retry: Callable[[int], None] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> BinaryIO:
    """Coroutine variant of open_exclusive_read_write_stream_with_retry()."""
    request, policy = _prepare(
        path, FileAccessMode.EXCLUSIVE_READ_WRITE, buffer_size, retry_count, delay,
        flags, logger, on_retry, is_async=True,
    )
    return await _async_open_with_retry(request, policy, cancel_event)
