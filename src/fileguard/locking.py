"""Non-blocking advisory file locks.

Access modes are expressed with OS locks taken right after the file is
opened: shared readers take a shared lock, exclusive read-write holders
take an exclusive one. A conflicting holder makes the lock call fail
immediately with an OSError, which the retry policy treats as a sharing
violation. Locks are released when the descriptor is closed.

POSIX uses flock(2). Windows has no shared lock in msvcrt: exclusive
holders lock the first byte, shared readers only check that nobody holds
it. A failure there is reported as ERROR_LOCK_VIOLATION.
"""

import errno
import os

if os.name == "nt":
    import msvcrt
else:
    import fcntl

# Windows system error code for a conflicting region lock
ERROR_LOCK_VIOLATION = 33


def lock_file(fd: int, exclusive: bool, path: str = "") -> None:
    """Lock an open descriptor without waiting.

    On Windows a shared reader tries the exclusive lock and releases it
    at once, so it fails while an exclusive holder has the file but
    keeps nothing locked afterwards.

    Args:
        fd: Open file descriptor
        exclusive: Take an exclusive lock instead of a shared one
        path: File path, used in the error raised on Windows

    Raises:
        OSError: If another holder has a conflicting lock
    """
    if os.name == "nt":
        try:
            msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
        except OSError as e:
            raise OSError(
                errno.EACCES, os.strerror(errno.EACCES), path, ERROR_LOCK_VIOLATION
            ) from e
        if not exclusive:
            msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
        return

    operation = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
    fcntl.flock(fd, operation | fcntl.LOCK_NB)
