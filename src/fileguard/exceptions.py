"""Exception types raised by fileguard.

I/O failures from the openers are never wrapped: callers receive the
original ``OSError`` subclass. The types here cover the conditions the
package itself detects.
"""


class FileGuardError(Exception):
    """Base class for errors raised by fileguard itself."""

    pass


class OperationCancelledError(FileGuardError):
    """Raised when a retrying open is cancelled between attempts.

    Attributes:
        path: File the open was targeting
        attempts: Number of attempts made before cancellation
    """

    def __init__(self, path: str, attempts: int = 0):
        self.path = path
        self.attempts = attempts
        super().__init__(f"Opening {path} was cancelled after {attempts} attempt(s)")


class SettingsValidationError(FileGuardError):
    """Raised when settings validation fails."""

    pass
