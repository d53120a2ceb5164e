"""Settings mixins grouped by concern.

RetrySettingsMixin: Defaults for the retrying file openers and the filename sanitizer.
LoggingSettingsMixin: Log level and output format.

These are composed into FileGuardSettings in config.py.
"""

import io
from datetime import timedelta
from typing import Literal

from pydantic import Field, field_validator


class RetrySettingsMixin:
    """Defaults used when an opener is called without explicit values.

    Mixin class that provides:
    - Retry budget and constant delay between attempts
    - Stream buffer size
    - Filler used when sanitizing filenames

    Should be composed with BaseSettings via multiple inheritance.
    """

    retry_count: int = Field(
        default=3,
        ge=0,
        title="Retry Count",
        description="Retries after the first failed open attempt",
    )
    retry_delay: float = Field(
        default=0.1,
        ge=0,
        title="Retry Delay",
        description="Seconds to wait between open attempts (constant backoff)",
    )
    buffer_size: int = Field(
        default=io.DEFAULT_BUFFER_SIZE,
        ge=-1,
        title="Buffer Size",
        description="Buffer size for opened streams (0 = unbuffered, -1 = default)",
    )
    filename_filler: str = Field(
        default="_",
        title="Filename Filler",
        description="Replacement for characters not allowed in filenames",
    )

    @field_validator("retry_delay", mode="before")
    @classmethod
    def delay_to_seconds(cls, v: float | str | timedelta) -> float | str:
        """Accept timedelta values for the retry delay."""
        if isinstance(v, timedelta):
            return v.total_seconds()
        return v


class LoggingSettingsMixin:
    """Settings for log output.

    Note: This is a mixin, not a BaseSettings subclass, to avoid
    MRO issues when composed with other settings classes.
    """

    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        title="Log Level",
        description="Logging verbosity level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        title="Log Format",
        description="Log output format (console for dev, json for production)",
    )
