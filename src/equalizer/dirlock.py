"""
Advisory locking with a directory as the lock.

Creating a directory is atomic on every local file system, so the process that
manages to create <base>/<name>.lock owns the lock until it removes it.
"""

import logging
import os
import time
from contextlib import contextmanager

from equalizer.exceptions import EqualizerError

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"


class DirLockError(EqualizerError):
    """Raised when a lock cannot be set up, e.g. its base directory is missing."""

    pass


class LockTimeoutError(DirLockError):
    """Raised when a lock could not be acquired before the timeout."""

    def __init__(self, message: str, lock_path: str, timeout: float):
        super().__init__(message)
        self.lock_path = lock_path
        self.timeout = timeout


class DirLock:
    """
    Directory based advisory lock.

    Example:
        >>> lock = DirLock("/data/inbox", "equalizer")
        >>> with lock.hold(timeout=30):
        ...     run_batch(...)
    """

    def __init__(self, base_path: str, lock_name: str):
        base_path = str(base_path)
        stripped = base_path.rstrip("/\\")
        base_path = stripped or base_path
        if not os.path.isdir(base_path):
            raise DirLockError(f"lock base directory does not exist: {base_path}")
        if not lock_name:
            raise DirLockError("lock name must not be empty")

        self.base_path = base_path
        self.lock_name = lock_name
        self.lock_path = os.path.join(base_path, lock_name + LOCK_SUFFIX)

    def try_lock(self) -> bool:
        """Acquire the lock without waiting; False if it is already held."""
        try:
            os.mkdir(self.lock_path)
        except FileExistsError:
            return False
        logger.debug(f"Acquired lock {self.lock_path}")
        return True

    def is_locked(self) -> bool:
        return os.path.isdir(self.lock_path)

    def wait_lock(self, timeout: float) -> None:
        """
        Acquire the lock, retrying with exponential backoff (1s, 2s, 4s, ...).

        Args:
            timeout: Maximum seconds to wait, must be positive

        Raises:
            ValueError: If timeout is not positive
            LockTimeoutError: If the lock is still held when the timeout expires
        """
        if timeout <= 0:
            raise ValueError(f"lock timeout must be positive, got {timeout}")

        start = time.monotonic()
        delay = 1.0
        while not self.try_lock():
            elapsed = time.monotonic() - start
            if elapsed >= timeout:
                raise LockTimeoutError(
                    f"timed out after {timeout}s waiting for lock {self.lock_path}",
                    lock_path=self.lock_path,
                    timeout=timeout,
                )
            sleep_for = min(delay, timeout - elapsed)
            logger.info(f"Lock {self.lock_path} is held, retrying in {sleep_for:.1f}s")
            time.sleep(sleep_for)
            delay *= 2

    def unlock(self) -> bool:
        """Release the lock; False if it was not held."""
        try:
            os.rmdir(self.lock_path)
        except FileNotFoundError:
            return False
        logger.debug(f"Released lock {self.lock_path}")
        return True

    @contextmanager
    def hold(self, timeout: float):
        """Hold the lock for the duration of a with block."""
        self.wait_lock(timeout)
        try:
            yield self
        finally:
            self.unlock()

    def __repr__(self) -> str:
        return f"DirLock({self.lock_path!r})"
