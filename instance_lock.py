"""
Instance Lock - Prevents two Short-Form Blockers from running at once.

Two hosts would each track their own overlays and fight over the same
apps and tabs. Uses fcntl.flock(), which the OS releases when the
process terminates, even on crashes.
"""

import os
import atexit
import fcntl
import logging
from pathlib import Path
from typing import Optional

import config

logger = logging.getLogger(__name__)


class InstanceLock:
    """
    Exclusive, non-blocking file lock holding the owner's PID.

    Usage:
        lock = InstanceLock()
        if not lock.acquire():
            print("Another instance is already running")
            sys.exit(1)
    """

    def __init__(self, lock_file: Optional[Path] = None):
        """
        Args:
            lock_file: Path to lock file (default: config.LOCK_FILE)
        """
        self.lock_file = Path(lock_file) if lock_file else config.LOCK_FILE
        self._lock_handle = None
        self._acquired = False

    def acquire(self) -> bool:
        """
        Try to acquire the instance lock.

        Returns:
            True if acquired, False if another instance holds it.
        """
        if self._acquired:
            return True
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            # 'a+' so a running owner's PID is not truncated before we hold the lock
            self._lock_handle = open(self.lock_file, 'a+')
        except OSError as e:
            logger.error(f"Could not open lock file {self.lock_file}: {e}")
            return False

        try:
            fcntl.flock(self._lock_handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            self._lock_handle.close()
            self._lock_handle = None
            return False

        self._lock_handle.seek(0)
        self._lock_handle.truncate()
        self._lock_handle.write(str(os.getpid()))
        self._lock_handle.flush()
        self._acquired = True
        logger.debug(f"Instance lock acquired (PID: {os.getpid()})")
        return True

    def release(self) -> None:
        """Release the lock and remove the lock file."""
        if self._lock_handle is None:
            return
        try:
            self._lock_handle.close()
        finally:
            self._lock_handle = None
            self._acquired = False
        try:
            self.lock_file.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug(f"Could not delete lock file: {e}")
        logger.debug("Instance lock released")

    def is_acquired(self) -> bool:
        return self._acquired

    def read_owner_pid(self) -> Optional[int]:
        """PID written by the current lock owner, if readable."""
        try:
            content = self.lock_file.read_text().strip()
        except OSError:
            return None
        return int(content) if content.isdigit() else None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


def check_single_instance(lock: Optional[InstanceLock] = None) -> Optional[InstanceLock]:
    """
    Acquire the instance lock for this process.

    The lock is released automatically at exit.

    Returns:
        The held lock, or None if another instance is running.
    """
    lock = lock or InstanceLock()
    if not lock.acquire():
        return None
    atexit.register(lock.release)
    return lock
