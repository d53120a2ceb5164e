"""Filename sanitization.

Converts arbitrary text into a string that can be used as a filename on
the current platform. Windows restricts the character set; other
platforms accept the text as is.

Example:
    >>> convert_to_filename("abc-123*", "", invalid_chars=WINDOWS_INVALID_FILENAME_CHARS)
    'abc-123'
"""

import os
from typing import AbstractSet

# Characters rejected by Windows in file names: <>:"/\|?* plus control codes 0-31
WINDOWS_INVALID_FILENAME_CHARS: frozenset[str] = frozenset(
    '<>:"/\\|?*' + "".join(chr(i) for i in range(32))
)


def is_restricted_platform(platform: str | None = None) -> bool:
    """Check whether the platform restricts filename characters.

    Args:
        platform: Platform name to check ("windows", "linux", "darwin", ...).
            Defaults to the running platform.

    Returns:
        True for Windows, False otherwise
    """
    if platform is None:
        return os.name == "nt"
    return platform.lower() in ("windows", "win32", "nt")


def invalid_filename_chars(platform: str | None = None) -> frozenset[str]:
    """Get the set of characters not allowed in filenames.

    Args:
        platform: Platform name, defaults to the running platform

    Returns:
        The disallowed characters; empty on permissive platforms
    """
    if is_restricted_platform(platform):
        return WINDOWS_INVALID_FILENAME_CHARS
    return frozenset()


def convert_to_filename(
    text: str,
    filler: str | None = None,
    invalid_chars: AbstractSet[str] | None = None,
) -> str:
    """Convert text into a string safe to use as a filename.

    Each disallowed character is replaced by ``filler``. An empty filler
    removes the character, a space filler turns it into a space.
    Disallowed characters inside ``filler`` are dropped first, so the
    result never contains any and the conversion is idempotent.

    Args:
        text: Text to convert
        filler: Replacement for each disallowed character. Defaults to
            the filename_filler setting.
        invalid_chars: Characters to treat as disallowed. Defaults to
            the running platform's set (empty outside Windows).

    Returns:
        The sanitized text
    """
    if filler is None:
        # config imports this module
        from fileguard.config import get_settings

        filler = get_settings().filename_filler
    if invalid_chars is None:
        invalid_chars = invalid_filename_chars()
    if not invalid_chars:
        return text

    safe_filler = "".join(c for c in filler if c not in invalid_chars)
    return "".join(safe_filler if c in invalid_chars else c for c in text)


def is_valid_filename(text: str, invalid_chars: AbstractSet[str] | None = None) -> bool:
    """Check that text contains no disallowed filename characters."""
    if invalid_chars is None:
        invalid_chars = invalid_filename_chars()
    return not any(c in invalid_chars for c in text)
