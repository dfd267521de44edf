"""
Output sinks: the rotating log file and the interactive console.

FileSink serialises writers through a named lock (by default an
inter-process advisory lock next to the log file). Inside the lock it checks
the live file's size, rotates when the limit is exceeded and appends the
formatted line, so two writers can never rotate the same file twice.
A lock timeout or I/O failure abandons the append and, unless console
output is suppressed for that entry, prints a ``[LOG ERROR]`` line instead.

ConsoleSink renders entries through a rich Console. It takes no lock; a
console line is written in a single call and interleaving between threads
is tolerated.
"""

import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from rich.console import Console
from rich.text import Text

from aitherlog.core.config.store import ConfigurationStore
from aitherlog.core.exceptions.custom_exceptions import LogWriteError, RotationError
from aitherlog.core.logging.entry import LogEntry
from aitherlog.core.logging.formatters import format_console, format_context
from aitherlog.core.logging.locks import (
    DEFAULT_LOCK_TIMEOUT,
    InterProcessFileLock,
    NamedLock,
)
from aitherlog.core.logging.rotation import rotate_log_files

LockFactory = Callable[[str], NamedLock]


class ConsoleSink:
    """Colourised console output."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def emit(self, entry: LogEntry) -> None:
        self.console.print(format_console(entry), soft_wrap=True, highlight=False)

    def error(self, message: str, details: Optional[Mapping[str, Any]] = None) -> None:
        """Print an internal ``[LOG ERROR]`` line."""
        self._internal("[LOG ERROR]", "bold red", message, details)

    def warning(self, message: str, details: Optional[Mapping[str, Any]] = None) -> None:
        """Print an internal ``[LOG WARNING]`` line."""
        self._internal("[LOG WARNING]", "yellow", message, details)

    def _internal(
        self, tag: str, style: str, message: str, details: Optional[Mapping[str, Any]]
    ) -> None:
        line = Text(f"{tag} ", style=style)
        line.append(message)
        if details:
            line.append(" " + format_context(details), style="dim")
        self.console.print(line, soft_wrap=True, highlight=False)


def ensure_parent_dir(path: Path) -> None:
    """Create the directory hierarchy holding ``path`` if it is missing."""
    parent = path.parent
    if str(parent) and not parent.exists():
        parent.mkdir(parents=True, exist_ok=True)


class FileSink:
    """Size-bounded, rotating, lock-serialised log file writer."""

    def __init__(
        self,
        store: ConfigurationStore,
        console_sink: ConsoleSink,
        lock_factory: LockFactory = InterProcessFileLock,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ):
        self.store = store
        self.console_sink = console_sink
        self.lock_factory = lock_factory
        self.lock_timeout = lock_timeout
        self._locks: Dict[str, NamedLock] = {}
        self._locks_guard = threading.Lock()

    def lock_for(self, path: Path) -> NamedLock:
        key = os.path.normcase(os.path.abspath(path))
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self.lock_factory(key)
                self._locks[key] = lock
            return lock

    def append(self, line: str, allow_console_fallback: bool = True) -> bool:
        """
        Append ``line`` to the live log file, rotating first when it is full.

        Returns:
            bool: True when the line reached the file
        """
        settings = self.store.get()
        path = Path(settings.log_file_path)

        try:
            ensure_parent_dir(path)
            with self.lock_for(path).hold(self.lock_timeout):
                if path.exists() and path.stat().st_size > settings.max_file_size_bytes:
                    self._rotate(path, settings.max_files, settings.log_to_console)
                with open(path, "a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
            return True
        except (LogWriteError, OSError) as e:
            if allow_console_fallback:
                self.console_sink.error(
                    f"Failed to write to log file: {line}",
                    {"path": str(path), "error": str(e)},
                )
            return False

    def rotate_now(self) -> bool:
        """Rotate the live file immediately, regardless of its size."""
        settings = self.store.get()
        path = Path(settings.log_file_path)
        try:
            with self.lock_for(path).hold(self.lock_timeout):
                errors = self._rotate(path, settings.max_files, settings.log_to_console)
            return not errors
        except (LogWriteError, OSError) as e:
            self.console_sink.error("Log rotation failed", {"path": str(path), "error": str(e)})
            return False

    def _rotate(self, path: Path, max_files: int, report: bool) -> list:
        def on_error(error: RotationError) -> None:
            if report:
                self.console_sink.warning(error.message, error.details)

        return rotate_log_files(path, max_files, on_error=on_error)

    def recent_lines(self, n_lines: int = 100) -> str:
        """Return the last ``n_lines`` lines of the live log file."""
        path = Path(self.store.get().log_file_path)
        if not path.exists():
            return ""
        with open(path, "r", encoding="utf-8", errors="replace") as handle:
            lines = handle.readlines()
        return "".join(lines[-n_lines:]) if n_lines > 0 else ""
