"""
structlog integration for aitherlog.

Toolkit modules log through structlog exactly as they would with any other
backend; this module points structlog at the logging engine so that every
event goes through the same level filtering, formatting, rotation and
console rendering as a direct ``write`` call.

Key Features:
    - Standard structlog API: ``get_logger(__name__)``, ``bind``, key-value
      context on every call
    - Method names map onto the level hierarchy (``debug``, ``info``,
      ``success``, ``warning``, ``error``, ``exception``, ``trace``, ...)
    - ``exc_info`` becomes the entry's exception descriptor
    - ``category``, ``event_id`` and ``source`` keys are lifted out of the
      context into the matching entry fields
    - Correlation IDs via ``add_correlation_id`` or structlog contextvars

Functions:
    setup_logging(engine=None): Configure structlog to emit into an engine
    get_logger(name): Get a bound logger
    add_correlation_id(correlation_id): Logger with a bound correlation ID

Example:
    >>> from aitherlog.core.logging.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Plan applied", workspace="lab-01", resources=12)
    >>> logger.bind(run_id="r-42").warning("Drift detected", resource="vm-3")

The logger name is used as the entry source; the caller's file, line and
function are still discovered from the stack, with structlog's own frames
skipped.
"""

import functools
import os
import sys
from typing import Any, Dict, Optional

import structlog

from aitherlog.core.logging.engine import LoggingEngine, get_engine
from aitherlog.core.logging.entry import register_internal_path

register_internal_path(os.path.dirname(os.path.abspath(structlog.__file__)))

METHOD_LEVELS: Dict[str, str] = {
    "verbose": "VERBOSE",
    "trace": "TRACE",
    "debug": "DEBUG",
    "info": "INFO",
    "msg": "INFO",
    "success": "SUCCESS",
    "warn": "WARN",
    "warning": "WARN",
    "error": "ERROR",
    "exception": "ERROR",
    "critical": "ERROR",
    "fatal": "ERROR",
}


def _exception_from(exc_info: Any) -> Optional[BaseException]:
    if not exc_info:
        return None
    if isinstance(exc_info, BaseException):
        return exc_info
    if isinstance(exc_info, tuple) and len(exc_info) == 3:
        return exc_info[1]
    return sys.exc_info()[1]


class EngineLogger:
    """structlog wrapped logger that forwards events to a LoggingEngine."""

    def __init__(self, name: Optional[str] = None, engine: Optional[LoggingEngine] = None):
        self.name = name
        self.engine = engine

    def _log(self, _method: str, event: Any = None, **event_dict: Any) -> None:
        exc_info = event_dict.pop("exc_info", None)
        if exc_info is None and _method == "exception":
            exc_info = True

        source = event_dict.pop("source", None) or self.name
        category = event_dict.pop("category", None)
        event_id = event_dict.pop("event_id", None)

        engine = self.engine or get_engine()
        engine.write(
            event if event is not None else "",
            level=METHOD_LEVELS.get(_method, "INFO"),
            source=source,
            context=event_dict or None,
            category=category,
            event_id=event_id,
            exception=_exception_from(exc_info),
        )

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        return functools.partial(self._log, name)


class EngineLoggerFactory:
    """structlog logger factory producing EngineLogger instances."""

    def __init__(self, engine: Optional[LoggingEngine] = None):
        self.engine = engine

    def __call__(self, *args: Any) -> EngineLogger:
        name = args[0] if args else None
        return EngineLogger(name, self.engine)


def setup_logging(engine: Optional[LoggingEngine] = None) -> None:
    """
    Configure structlog to emit into ``engine``.

    When ``engine`` is None events go to the process-wide default engine,
    looked up at call time so ``set_engine`` takes effect immediately.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.UnicodeDecoder(),
        ],
        wrapper_class=structlog.BoundLogger,
        logger_factory=EngineLoggerFactory(engine),
        context_class=dict,
        cache_logger_on_first_use=False,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a structlog logger that writes through the logging engine.

    Args:
        name (str): Logger name, typically ``__name__``; used as entry source

    Note:
        If structlog hasn't been configured yet, this function will call
        setup_logging() first.
    """
    if not structlog.is_configured():
        setup_logging()
    return structlog.get_logger(name)


def add_correlation_id(
    correlation_id: str, name: Optional[str] = None
) -> structlog.BoundLogger:
    """Create a logger with a bound correlation ID."""
    return get_logger(name or __name__).bind(correlation_id=correlation_id)
