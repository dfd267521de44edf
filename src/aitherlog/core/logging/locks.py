"""
Named mutual-exclusion locks for the log file critical section.

Two implementations share the NamedLock interface:

    ProcessLocalLock: a registry of ``threading.Lock`` keyed by name. Every
        instance created for the same name shares one lock, which serialises
        threads but not processes. Tests use it where cross-process
        behaviour is irrelevant.

    InterProcessFileLock: serialises threads through the same registry,
        then takes an OS-level advisory lock on ``<log path>.lock`` so that
        separate processes writing the same log file are serialised too.
        POSIX systems use ``fcntl.flock``; elsewhere the lock is an
        exclusively-created lock file with stale-lock recovery.

Both acquire with a bounded wait and raise LockTimeoutError when it expires.
"""

import os
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from aitherlog.core.exceptions.custom_exceptions import LockTimeoutError

if os.name == "posix":
    import fcntl
else:
    fcntl = None

DEFAULT_LOCK_TIMEOUT = 1.0
POLL_INTERVAL = 0.01
STALE_LOCK_SECONDS = 60.0

_registry_lock = threading.Lock()
_named_locks: Dict[str, threading.Lock] = {}


def _thread_lock_for(name: str) -> threading.Lock:
    with _registry_lock:
        lock = _named_locks.get(name)
        if lock is None:
            lock = threading.Lock()
            _named_locks[name] = lock
        return lock


class NamedLock:
    """Interface for a lock identified by name."""

    def __init__(self, name: str):
        self.name = name

    def acquire(self, timeout: float = DEFAULT_LOCK_TIMEOUT) -> bool:
        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError

    @contextmanager
    def hold(self, timeout: float = DEFAULT_LOCK_TIMEOUT) -> Iterator["NamedLock"]:
        """
        Hold the lock for the duration of a ``with`` block.

        Raises:
            LockTimeoutError: If the lock is not acquired within ``timeout``
        """
        if not self.acquire(timeout):
            raise LockTimeoutError(
                "Timed out waiting for log file lock",
                error_code="LOCK_TIMEOUT",
                details={"lock": self.name, "timeout": timeout},
            )
        try:
            yield self
        finally:
            self.release()


class ProcessLocalLock(NamedLock):
    """Thread-level lock shared by every instance with the same name."""

    def __init__(self, name: str):
        super().__init__(name)
        self._lock = _thread_lock_for(name)

    def acquire(self, timeout: float = DEFAULT_LOCK_TIMEOUT) -> bool:
        return self._lock.acquire(timeout=max(timeout, 0))

    def release(self) -> None:
        self._lock.release()


class InterProcessFileLock(NamedLock):
    """Advisory lock on ``<path>.lock`` visible to every process using the path."""

    def __init__(self, name: str, lock_path: Optional[str] = None):
        super().__init__(name)
        self.lock_path = lock_path or f"{name}.lock"
        self._thread_lock = _thread_lock_for(os.path.normcase(os.path.abspath(self.lock_path)))
        self._fd: Optional[int] = None

    def acquire(self, timeout: float = DEFAULT_LOCK_TIMEOUT) -> bool:
        deadline = time.monotonic() + max(timeout, 0)
        if not self._thread_lock.acquire(timeout=max(timeout, 0)):
            return False

        try:
            while True:
                fd = self._try_os_lock()
                if fd is not None:
                    self._fd = fd
                    return True
                if time.monotonic() >= deadline:
                    break
                time.sleep(POLL_INTERVAL)
        except BaseException:
            self._thread_lock.release()
            raise

        self._thread_lock.release()
        return False

    def release(self) -> None:
        fd, self._fd = self._fd, None
        try:
            if fd is not None:
                if fcntl is not None:
                    fcntl.flock(fd, fcntl.LOCK_UN)
                    os.close(fd)
                else:
                    os.close(fd)
                    try:
                        os.unlink(self.lock_path)
                    except FileNotFoundError:
                        pass
        finally:
            self._thread_lock.release()

    def _try_os_lock(self) -> Optional[int]:
        parent = os.path.dirname(os.path.abspath(self.lock_path))
        os.makedirs(parent, exist_ok=True)

        if fcntl is not None:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_WRONLY, 0o644)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                os.close(fd)
                return None
            except BaseException:
                os.close(fd)
                raise
            return fd

        try:
            return os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            self._break_stale_lock()
            return None

    def _break_stale_lock(self) -> None:
        try:
            age = time.time() - os.path.getmtime(self.lock_path)
            if age > STALE_LOCK_SECONDS:
                os.unlink(self.lock_path)
        except OSError:
            pass
