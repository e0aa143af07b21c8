"""
Process-level run lock.

Guarantees at most one scan touches a checksum database at a time by
holding an exclusive flock on a lock file for the duration of the run.
"""

import fcntl
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class RunLockError(RuntimeError):
    """Raised when the lock is held by another process or cannot be taken."""
    pass


class RunLock:
    """
    Non-blocking exclusive file lock, usable as a context manager.

    Example:
        with RunLock(Path("checksums.db.lock")):
            service.run(paths)
    """

    def __init__(self, lock_path: Path | str):
        self._lock_path = Path(lock_path)
        self._fd: Optional[int] = None

    @property
    def lock_path(self) -> Path:
        return self._lock_path

    @property
    def locked(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """
        Take the lock without waiting.

        Raises:
            RunLockError: If another process holds the lock or the lock
                file cannot be opened
        """
        if self._fd is not None:
            return

        try:
            self._lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise RunLockError(f"Unable to open lock file {self._lock_path}: {e}") from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            os.close(fd)
            raise RunLockError(
                f"Another run holds the lock {self._lock_path}; is a scan already running?"
            ) from e

        self._fd = fd
        logger.debug(f"Acquired run lock: {self._lock_path}")

    def release(self) -> None:
        """Release the lock if held."""
        if self._fd is None:
            return
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            os.close(self._fd)
            self._fd = None
        logger.debug(f"Released run lock: {self._lock_path}")

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
