"""Shared test fixtures and utilities for fileguard tests.

Provides:
- MockContext for isolating tests from global settings and the environment
- Fast-retry settings so lock contention tests finish quickly
- Helpers for holding a file in a conflicting access mode
"""

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import pytest
import structlog

from fileguard.config import (
    FileGuardSettings,
    reload_settings,
    set_context_settings,
    set_settings,
)
from fileguard.streams import open_exclusive_read_write_stream_with_retry

requires_flock = pytest.mark.skipif(
    os.name == "nt", reason="only flock(2) lets shared readers hold off writers"
)


class MockContext:
    """Context manager for isolating tests from global state.

    Handles:
    - Resetting the global settings singleton
    - Hiding FILEGUARD_* environment variables and user/project JSON settings
    - Providing a temporary working directory

    Usage:
        with MockContext(retry_count=1) as ctx:
            settings = ctx.settings
            workspace = ctx.workspace_dir
    """

    def __init__(self, **settings_kwargs):
        """Initialize mock context.

        Args:
            **settings_kwargs: Settings overrides
        """
        self._settings_kwargs = settings_kwargs
        self._temp_dir: tempfile.TemporaryDirectory | None = None
        self._settings: FileGuardSettings | None = None
        self._original_env: dict[str, str | None] = {}
        self._original_cwd: str | None = None

    def __enter__(self) -> "MockContext":
        """Enter the mock context."""
        self._temp_dir = tempfile.TemporaryDirectory()
        workspace_dir = Path(self._temp_dir.name)
        home_dir = workspace_dir / "home"
        home_dir.mkdir()

        env_vars = [var for var in os.environ if var.startswith("FILEGUARD_")]
        env_vars += ["HOME", "USERPROFILE"]
        for var in env_vars:
            self._original_env[var] = os.environ.get(var)
            os.environ.pop(var, None)
        os.environ["HOME"] = str(home_dir)
        os.environ["USERPROFILE"] = str(home_dir)

        self._original_cwd = os.getcwd()
        os.chdir(workspace_dir)

        self._settings = FileGuardSettings(**self._settings_kwargs)
        set_settings(self._settings)

        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the mock context and clean up."""
        set_context_settings(None)

        if self._original_cwd:
            os.chdir(self._original_cwd)

        for var, value in self._original_env.items():
            if value is None:
                os.environ.pop(var, None)
            else:
                os.environ[var] = value

        reload_settings()

        if self._temp_dir:
            self._temp_dir.cleanup()

    @property
    def settings(self) -> FileGuardSettings:
        """Get the test settings instance."""
        if self._settings is None:
            raise RuntimeError("MockContext not entered")
        return self._settings

    @property
    def workspace_dir(self) -> Path:
        """Get the temporary working directory."""
        if self._temp_dir is None:
            raise RuntimeError("MockContext not entered")
        return Path(self._temp_dir.name)


@contextmanager
def held_exclusively(path: Path) -> Generator:
    """Hold a file open for exclusive read-write, as another process would."""
    stream = open_exclusive_read_write_stream_with_retry(path, retry_count=0, delay=0)
    try:
        yield stream
    finally:
        stream.close()


@pytest.fixture
def mock_context() -> Generator[MockContext, None, None]:
    """Fixture providing an isolated test context with fast retries."""
    with MockContext(retry_count=3, retry_delay=0.01) as ctx:
        yield ctx


@pytest.fixture
def sample_file(mock_context: MockContext) -> Path:
    """Fixture providing an existing file with known content."""
    path = mock_context.workspace_dir / "sample.txt"
    path.write_bytes(b"hello fileguard\n")
    return path


@pytest.fixture
def retry_calls() -> list[int]:
    """Fixture collecting attempt numbers passed to on_retry."""
    return []


@pytest.fixture
def reset_structlog() -> Generator[None, None, None]:
    """Fixture restoring structlog defaults after a test configures it."""
    yield
    structlog.reset_defaults()
