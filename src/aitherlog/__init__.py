"""
aitherlog - Structured logging engine for the AitherZero automation toolkit

aitherlog is the logging core every other toolkit component writes through.
It filters entries per sink, renders them as structured, simple or JSON
lines, appends them to a size-bounded rotating file under a cross-process
lock and shows a colourised view on the console.

Key Features:
    - Ordered level hierarchy with independent file and console thresholds
    - Environment-driven configuration with legacy variable fallbacks
    - Rotating log file shared safely between threads and processes
    - Named performance timers and batch ingestion with a worker pool
    - structlog integration and a typer command-line interface

Modules:
    core: Configuration, exceptions and the logging engine
    cli: Command-line interface tools

Example:
    >>> from aitherlog import initialize, write, get_logger
    >>> initialize(log_level="DEBUG")
    >>> write("Lab deployed", level="SUCCESS", context={"lab": "dev-01"})
    >>> get_logger(__name__).info("Plan applied", resources=12)
"""

__version__ = "0.1.0"
__author__ = "AitherZero"
__description__ = (
    "Multi-sink structured logging engine with rotating files, per-sink "
    "level filtering, performance tracing and bulk ingestion."
)

from aitherlog.core.config.settings import LogFormat, LoggingSettings
from aitherlog.core.logging.engine import (
    LoggingEngine,
    get_configuration,
    get_engine,
    get_recent_logs,
    initialize,
    set_engine,
    start_trace,
    stop_trace,
    update_configuration,
    write,
    write_bulk,
    write_debug_context,
    write_trace,
)
from aitherlog.core.logging.levels import LogLevel
from aitherlog.core.logging.logger import get_logger

__all__ = [
    "LogFormat",
    "LogLevel",
    "LoggingEngine",
    "LoggingSettings",
    "get_configuration",
    "get_engine",
    "get_logger",
    "get_recent_logs",
    "initialize",
    "set_engine",
    "start_trace",
    "stop_trace",
    "update_configuration",
    "write",
    "write_bulk",
    "write_debug_context",
    "write_trace",
]
