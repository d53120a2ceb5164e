"""Configuration for fileguard.

Provides FileGuardSettings, the source of the defaults the retrying
openers fall back to when called without explicit values.

Settings Management:
    The module provides both global singleton and context-based settings:

    1. Global singleton (simple cases):
        set_settings(my_settings)
        settings = get_settings()

    2. Context-based (isolated contexts, per-task overrides):
        with SettingsContext(my_settings):
            # Code here sees my_settings via get_settings()
            settings = get_settings()  # Returns my_settings

Settings Loading Priority (highest to lowest):
    1. Constructor arguments
    2. Environment variables (FILEGUARD_* prefix)
    3. Project config (./.fileguard/settings.json)
    4. User config (~/.fileguard/settings.json)
    5. .env file
    6. Default values
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Generator, Tuple, Type

from pydantic_settings import (
    BaseSettings as PydanticBaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from fileguard.exceptions import SettingsValidationError
from fileguard.filename import invalid_filename_chars
from fileguard.settings_mixins import LoggingSettingsMixin, RetrySettingsMixin

__all__ = [
    "APP_NAME",
    "FileGuardSettings",
    "SettingsContext",
    "SettingsValidationError",
    "get_settings",
    "set_settings",
    "set_context_settings",
    "get_context_settings",
    "validate_settings",
    "reload_settings",
]

APP_NAME = "fileguard"


def _get_json_config_source(
    settings_cls: Type[PydanticBaseSettings],
    json_file: Path,
) -> PydanticBaseSettingsSource | None:
    """Create a JSON config source if the file exists.

    Args:
        settings_cls: The settings class
        json_file: Path to JSON config file

    Returns:
        JsonConfigSettingsSource if file exists, None otherwise
    """
    if not json_file.exists():
        return None
    return JsonConfigSettingsSource(settings_cls, json_file=json_file)


class FileGuardSettings(RetrySettingsMixin, LoggingSettingsMixin, PydanticBaseSettings):
    """Settings for fileguard.

    Mixins provide organized settings:
    - RetrySettingsMixin: Retry budget, delay, buffer size, filename filler
    - LoggingSettingsMixin: Log level and format
    """

    model_config = SettingsConfigDict(
        env_prefix="FILEGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[PydanticBaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources for layered JSON configuration.

        Note: JSON sources are only included if the files exist.
        """
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
        ]

        project_json = _get_json_config_source(
            settings_cls,
            Path.cwd() / f".{APP_NAME}" / "settings.json",
        )
        if project_json:
            sources.append(project_json)

        user_json = _get_json_config_source(
            settings_cls,
            Path.home() / f".{APP_NAME}" / "settings.json",
        )
        if user_json:
            sources.append(user_json)

        sources.append(dotenv_settings)

        return tuple(sources)


# Context variable for settings (takes precedence over global singleton)
_settings_context: ContextVar[FileGuardSettings | None] = ContextVar(
    "settings_context", default=None
)

_settings_instance: FileGuardSettings | None = None


def get_settings() -> FileGuardSettings:
    """Get the current settings instance.

    Settings resolution order:
    1. Context variable (set via SettingsContext or set_context_settings)
    2. Global singleton (set via set_settings)
    3. Fresh FileGuardSettings instance (created on first access)

    Returns:
        FileGuardSettings instance for the current context
    """
    context_settings = _settings_context.get()
    if context_settings is not None:
        return context_settings

    global _settings_instance
    if _settings_instance is None:
        _settings_instance = FileGuardSettings()
    return _settings_instance


def set_settings(settings: FileGuardSettings) -> None:
    """Set the global settings instance.

    Note: For isolated contexts (e.g., testing), prefer using
    SettingsContext instead.

    Args:
        settings: Settings instance to use globally
    """
    global _settings_instance
    _settings_instance = settings


def set_context_settings(settings: FileGuardSettings | None) -> Token:
    """Set settings for the current context.

    Args:
        settings: Settings to use in current context, or None to clear

    Returns:
        Token that can be used to reset the context variable.
    """
    return _settings_context.set(settings)


def get_context_settings() -> FileGuardSettings | None:
    """Get settings from current context (if any)."""
    return _settings_context.get()


@contextmanager
def SettingsContext(settings: FileGuardSettings) -> Generator[FileGuardSettings, None, None]:
    """Context manager for isolated settings.

    Example:
        with SettingsContext(FileGuardSettings(retry_count=10)):
            stream = open_shared_read_stream_with_retry(path)  # up to 10 retries

    Args:
        settings: Settings to use within the context

    Yields:
        The settings instance
    """
    token = _settings_context.set(settings)
    try:
        yield settings
    finally:
        _settings_context.reset(token)


def reload_settings() -> FileGuardSettings:
    """Reload settings (clears global singleton and context cache).

    Returns:
        Fresh FileGuardSettings instance
    """
    global _settings_instance
    _settings_instance = None
    _settings_context.set(None)
    return get_settings()


def validate_settings(settings: FileGuardSettings) -> None:
    """Validate settings for runtime use.

    Performs validation that depends on the current platform:
    - The filename filler must itself be a valid filename fragment

    Args:
        settings: Settings to validate

    Raises:
        SettingsValidationError: If validation fails
    """
    errors = []

    bad_filler = sorted(set(settings.filename_filler) & invalid_filename_chars())
    if bad_filler:
        errors.append(
            f"Filename filler {settings.filename_filler!r} contains characters "
            f"not allowed in filenames: {', '.join(repr(c) for c in bad_filler)}"
        )

    if errors:
        raise SettingsValidationError("\n".join(errors))
