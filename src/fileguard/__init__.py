"""fileguard - Safe filenames and file opens that ride out sharing violations.

This package provides two small helpers:

- Filename sanitization that replaces characters the platform does not
  allow in file names
- Openers that retry a file open on transient sharing violations, with a
  constant delay and a bounded retry budget, in blocking and asyncio forms

Defaults come from FileGuardSettings (environment variables with the
FILEGUARD_ prefix, JSON settings files, or code), and retry activity is
logged through structlog.
"""

from fileguard.config import (
    FileGuardSettings,
    SettingsContext,
    get_context_settings,
    get_settings,
    reload_settings,
    set_context_settings,
    set_settings,
    validate_settings,
)
from fileguard.exceptions import (
    FileGuardError,
    OperationCancelledError,
    SettingsValidationError,
)
from fileguard.filename import (
    WINDOWS_INVALID_FILENAME_CHARS,
    convert_to_filename,
    invalid_filename_chars,
    is_restricted_platform,
    is_valid_filename,
)
from fileguard.logging import configure_logging, get_logger
from fileguard.retry import RetryPolicy, create_retry_policy, is_retryable_error
from fileguard.streams import (
    FileAccessMode,
    OpenRequest,
    async_open_exclusive_read_write_stream_with_retry,
    async_open_shared_read_stream_with_retry,
    open_exclusive_read_write_stream_with_retry,
    open_shared_read_stream_with_retry,
    open_stream,
)

__all__ = [
    # Filenames
    "WINDOWS_INVALID_FILENAME_CHARS",
    "convert_to_filename",
    "invalid_filename_chars",
    "is_restricted_platform",
    "is_valid_filename",
    # Streams
    "FileAccessMode",
    "OpenRequest",
    "open_stream",
    "open_shared_read_stream_with_retry",
    "open_exclusive_read_write_stream_with_retry",
    "async_open_shared_read_stream_with_retry",
    "async_open_exclusive_read_write_stream_with_retry",
    # Retry
    "RetryPolicy",
    "create_retry_policy",
    "is_retryable_error",
    # Settings
    "FileGuardSettings",
    "SettingsContext",
    "get_settings",
    "set_settings",
    "set_context_settings",
    "get_context_settings",
    "validate_settings",
    "reload_settings",
    # Errors
    "FileGuardError",
    "OperationCancelledError",
    "SettingsValidationError",
    # Logging
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
