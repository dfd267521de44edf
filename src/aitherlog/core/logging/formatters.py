"""
Entry formatters for the file and console sinks.

File encodings:
    - Simple: ``[timestamp] [LEVEL] message``
    - Structured (default): bracketed timestamp, level, pid, tid, source and
      ``file:line``, then the message, a ``{k=v, ...}`` context block, a
      ``CallStack: a -> b`` block and an ``Exception: Type - message`` block
    - JSON: one compact object per line (newline-delimited JSON), rendered
      with structlog's JSONRenderer

Every encoding yields exactly one physical line per entry; multi-line
messages and tracebacks are folded so that concurrent appends can be
counted and tailed line by line.

The console rendering is shorter: fixed-width level and source columns,
message, inline context. Call stacks and exceptions go to the file only.
"""

from typing import Any, Dict, Mapping, Union

import structlog
from rich.text import Text

from aitherlog.core.config.settings import LogFormat
from aitherlog.core.logging.entry import LogEntry

LEVEL_WIDTH = 7
SOURCE_WIDTH = 20

LEVEL_STYLES: Dict[str, str] = {
    "ERROR": "bold red",
    "WARN": "yellow",
    "INFO": "white",
    "SUCCESS": "green",
    "DEBUG": "cyan",
    "TRACE": "magenta",
    "VERBOSE": "dim",
}

_json_renderer = structlog.processors.JSONRenderer(separators=(",", ":"))


def _fold(text: str) -> str:
    """Collapse line breaks so an entry stays on one physical line."""
    return " | ".join(part.strip() for part in text.splitlines() if part.strip())


def format_context(context: Mapping[str, Any]) -> str:
    if not context:
        return ""
    return "{" + ", ".join(f"{k}={v}" for k, v in context.items()) + "}"


def format_simple(entry: LogEntry) -> str:
    return f"[{entry.timestamp_text}] [{entry.level}] {_fold(entry.message)}"


def format_structured(entry: LogEntry) -> str:
    parts = [
        f"[{entry.timestamp_text}]",
        f"[{entry.level}]",
        f"[PID:{entry.process_id}]",
        f"[TID:{entry.thread_id}]",
        f"[{entry.source}]",
        f"[{entry.location}]",
    ]
    if entry.category:
        parts.append(f"[{entry.category}]")
    if entry.event_id is not None:
        parts.append(f"[EventId:{entry.event_id}]")
    parts.append(_fold(entry.message))

    if entry.context:
        parts.append(_fold(format_context(entry.context)))
    if entry.call_stack:
        parts.append("CallStack: " + " -> ".join(entry.call_stack))
    if entry.exception is not None:
        parts.append(
            f"Exception: {entry.exception.type} - {_fold(entry.exception.message)}"
        )
        if entry.exception.stack_trace:
            parts.append(f"StackTrace: {_fold(entry.exception.stack_trace)}")

    return " ".join(parts)


def format_json(entry: LogEntry) -> str:
    return _json_renderer(None, "", entry.to_dict())


_FORMATTERS = {
    LogFormat.SIMPLE: format_simple,
    LogFormat.STRUCTURED: format_structured,
    LogFormat.JSON: format_json,
}


def format_entry(entry: LogEntry, mode: Union[LogFormat, str] = LogFormat.STRUCTURED) -> str:
    """Render ``entry`` in the requested file encoding."""
    if not isinstance(mode, LogFormat):
        mode = LogFormat(str(mode).strip().lower())
    return _FORMATTERS[mode](entry)


def format_console(entry: LogEntry) -> Text:
    """Render ``entry`` as a styled console line."""
    source = entry.source[:SOURCE_WIDTH].ljust(SOURCE_WIDTH)
    line = Text(no_wrap=False)
    line.append(f"[{entry.timestamp.strftime('%H:%M:%S')}] ", style="dim")
    line.append(
        f"[{entry.level.ljust(LEVEL_WIDTH)}] ",
        style=LEVEL_STYLES.get(entry.level, "white"),
    )
    line.append(f"[{source}] ", style="blue")
    line.append(entry.message, style=LEVEL_STYLES.get(entry.level, "white"))
    if entry.context:
        line.append(" " + format_context(entry.context), style="dim")
    return line
