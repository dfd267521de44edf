"""
Log entry construction.

An entry is built once per ``write`` call from the caller's arguments plus
ambient context: caller location, process and thread identifiers, an
optional call stack and an optional exception descriptor. Entries are
immutable and are discarded as soon as the sinks have rendered them.

Caller discovery walks the interpreter stack outward and skips every frame
that belongs to the logging core itself (plus any path registered with
``register_internal_path``, which the structlog bridge uses for structlog's
own frames), so the reported file, line and function are those of the code
that asked for the log entry.
"""

import os
import sys
import threading
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import FrameType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from aitherlog.core.config.store import ConfigurationStore
from aitherlog.core.logging.levels import LogLevel, LevelLike, normalize_level_name, parse_level

DEFAULT_SOURCE = "AitherZero"
MAX_EXCEPTION_CHAIN = 32
MAX_STACK_DEPTH = 64

# Levels that carry a call stack when capture is enabled
CALL_STACK_LEVELS = frozenset({LogLevel.ERROR, LogLevel.DEBUG, LogLevel.TRACE})

_CORE_DIR = os.path.normcase(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_INTERNAL_DIRS: List[str] = [_CORE_DIR]


def register_internal_path(path: str) -> None:
    """Treat frames under ``path`` as logging internals during caller discovery."""
    normalized = os.path.normcase(os.path.abspath(path))
    if normalized not in _INTERNAL_DIRS:
        _INTERNAL_DIRS.append(normalized)


def _is_internal(filename: str) -> bool:
    normalized = os.path.normcase(os.path.abspath(filename))
    return any(
        normalized == d or normalized.startswith(d + os.sep) for d in _INTERNAL_DIRS
    )


def find_caller_frame() -> Optional[FrameType]:
    frame: Optional[FrameType] = sys._getframe(1)
    while frame is not None and _is_internal(frame.f_code.co_filename):
        frame = frame.f_back
    return frame


@dataclass(frozen=True)
class CallSite:
    """Where a log request originated, plus the outermost-first caller chain."""

    function: Optional[str] = None
    file: Optional[str] = None
    line: int = 0
    call_stack: Tuple[str, ...] = ()

    @property
    def source(self) -> str:
        """Function name, script name for module-level code, else a generic label."""
        if self.function and self.function != "<module>":
            return self.function
        if self.file:
            return Path(self.file).stem or DEFAULT_SOURCE
        return DEFAULT_SOURCE


def capture_call_site(with_stack: bool = False) -> CallSite:
    """Describe the first frame outside the logging core."""
    frame = find_caller_frame()
    if frame is None:
        return CallSite()

    stack: Tuple[str, ...] = ()
    if with_stack:
        frames = []
        current: Optional[FrameType] = frame
        while current is not None and len(frames) < MAX_STACK_DEPTH:
            code = current.f_code
            frames.append(
                f"{code.co_name} ({os.path.basename(code.co_filename)}:{current.f_lineno})"
            )
            current = current.f_back
        stack = tuple(reversed(frames))

    return CallSite(
        function=frame.f_code.co_name,
        file=frame.f_code.co_filename,
        line=frame.f_lineno,
        call_stack=stack,
    )


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


@dataclass(frozen=True)
class ExceptionInfo:
    """Best-effort description of an exception and its chain of causes."""

    type: str
    message: str
    stack_trace: Optional[str] = None
    inner_exception: Optional[str] = None
    inner_exceptions: Tuple[Dict[str, str], ...] = ()
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "message": self.message}
        if self.stack_trace:
            data["stack_trace"] = self.stack_trace
        if self.inner_exception is not None:
            data["inner_exception"] = self.inner_exception
        if self.inner_exceptions:
            data["inner_exceptions"] = [dict(link) for link in self.inner_exceptions]
        data.update(self.extra)
        return data


def _next_in_chain(exc: BaseException) -> Optional[BaseException]:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__context__ is not None and not exc.__suppress_context__:
        return exc.__context__
    return None


def exception_chain(
    exc: BaseException, limit: int = MAX_EXCEPTION_CHAIN
) -> List[Dict[str, str]]:
    """
    Flatten the causes of ``exc`` into an ordered ``[{type, message}]`` list.

    The walk stops after ``limit`` links or when an exception repeats.
    """
    chain: List[Dict[str, str]] = []
    seen = {id(exc)}
    current = _next_in_chain(exc)
    while current is not None and len(chain) < limit and id(current) not in seen:
        seen.add(id(current))
        chain.append({"type": type(current).__name__, "message": _safe_str(current)})
        current = _next_in_chain(current)
    return chain


def _exception_extras(exc: BaseException) -> Dict[str, Any]:
    extras: Dict[str, Any] = {}

    for attr in ("errno", "strerror", "filename", "winerror"):
        try:
            value = getattr(exc, attr, None)
        except Exception:
            continue
        if value is not None:
            extras[attr] = value

    try:
        notes = getattr(exc, "__notes__", None)
        if notes:
            extras["notes"] = [_safe_str(note) for note in notes]
    except Exception:
        pass

    try:
        tb = exc.__traceback__
        while tb is not None and tb.tb_next is not None:
            tb = tb.tb_next
        if tb is not None:
            extras["target_site"] = tb.tb_frame.f_code.co_name
    except Exception:
        pass

    try:
        if exc.args:
            extras["data"] = [
                a if isinstance(a, (str, int, float, bool)) else repr(a)
                for a in exc.args
            ]
    except Exception:
        pass

    return extras


def describe_exception(exc: Any) -> ExceptionInfo:
    """Capture type, message, traceback and cause chain; missing parts are omitted."""
    if not isinstance(exc, BaseException):
        return ExceptionInfo(type=type(exc).__name__, message=_safe_str(exc))

    stack_trace = None
    try:
        if exc.__traceback__ is not None:
            stack_trace = "".join(traceback.format_tb(exc.__traceback__)).rstrip()
    except Exception:
        stack_trace = None

    try:
        chain = exception_chain(exc)
    except Exception:
        chain = []

    return ExceptionInfo(
        type=type(exc).__name__,
        message=_safe_str(exc),
        stack_trace=stack_trace or None,
        inner_exception=chain[0]["message"] if chain else None,
        inner_exceptions=tuple(chain),
        extra=_exception_extras(exc),
    )


def merge_context(*maps: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge maps left to right; on a key collision the later map wins."""
    merged: Dict[str, Any] = {}
    for mapping in maps:
        if mapping:
            merged.update(mapping)
    return merged


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record."""

    timestamp: datetime
    level: str
    message: str
    source: str
    process_id: int
    thread_id: int
    file: Optional[str] = None
    line: int = 0
    function: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    category: Optional[str] = None
    event_id: Optional[int] = None
    call_stack: Tuple[str, ...] = ()
    exception: Optional[ExceptionInfo] = None

    @property
    def rank(self) -> LogLevel:
        return parse_level(self.level)

    @property
    def timestamp_text(self) -> str:
        """Timestamp with millisecond precision."""
        return self.timestamp.strftime("%Y-%m-%d %H:%M:%S.") + (
            f"{self.timestamp.microsecond // 1000:03d}"
        )

    @property
    def location(self) -> str:
        name = os.path.basename(self.file) if self.file else "unknown"
        return f"{name}:{self.line}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to a dictionary; empty optional fields are dropped."""
        data: Dict[str, Any] = {
            "timestamp": self.timestamp_text,
            "level": self.level,
            "message": self.message,
            "source": self.source,
            "process_id": self.process_id,
            "thread_id": self.thread_id,
            "file": self.file,
            "line": self.line,
            "function": self.function,
        }
        if self.context:
            data["context"] = dict(self.context)
        if self.category is not None:
            data["category"] = self.category
        if self.event_id is not None:
            data["event_id"] = self.event_id
        if self.call_stack:
            data["call_stack"] = list(self.call_stack)
        if self.exception is not None:
            data["exception"] = self.exception.to_dict()
        return data


class EntryBuilder:
    """Assembles LogEntry objects using the active configuration."""

    def __init__(self, store: ConfigurationStore):
        self.store = store

    def build(
        self,
        message: Any,
        level: LevelLike = "INFO",
        source: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
        additional_data: Optional[Mapping[str, Any]] = None,
        category: Optional[str] = None,
        event_id: Optional[int] = None,
        exception: Any = None,
        call_site: Optional[CallSite] = None,
    ) -> LogEntry:
        level_name = normalize_level_name(level)
        rank = parse_level(level_name)
        wants_stack = (
            self.store.get().enable_call_stack and rank in CALL_STACK_LEVELS
        )

        if call_site is None:
            call_site = capture_call_site(with_stack=wants_stack)

        return LogEntry(
            timestamp=datetime.now(),
            level=level_name,
            message=_safe_str(message),
            source=source or call_site.source,
            process_id=os.getpid(),
            thread_id=threading.get_native_id(),
            file=call_site.file,
            line=call_site.line,
            function=call_site.function,
            context=merge_context(context, additional_data),
            category=category,
            event_id=event_id,
            call_stack=call_site.call_stack if wants_stack else (),
            exception=describe_exception(exception) if exception is not None else None,
        )
