"""
Logging engine for the AitherZero toolkit.

This module wires the configuration store, entry builder, formatters,
sinks, performance tracer and bulk dispatcher into a single owned object,
and exposes a process-wide default engine behind plain functions for
callers that just want to log.

Key Features:
    - Per-sink thresholds: an entry only needs to clear one sink's bar
    - Rotating, lock-serialised file sink with console fallback
    - Colourised console sink
    - One-time session header on the first (or a forced) initialization
    - Named performance timers and batch ingestion
    - ``write`` never raises; internal failures become ``[LOG ERROR]`` lines

Functions:
    get_engine(): Process-wide default engine (created on first use)
    set_engine(): Replace the default engine
    write(), initialize(), get_configuration(), update_configuration(),
    start_trace(), stop_trace(), write_trace(), write_debug_context(),
    write_bulk(), get_recent_logs(): Delegate to the default engine

Example:
    >>> from aitherlog import write, start_trace, stop_trace
    >>> write("Provisioning lab", level="INFO", context={"lab": "dev-01"})
    >>> start_trace("plan")
    >>> result = stop_trace("plan")
    >>> result.elapsed_milliseconds if result else None
"""

import inspect
import os
import platform
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from rich.console import Console

from aitherlog.core.config.settings import LoggingSettings, resolve_settings
from aitherlog.core.config.store import ConfigurationStore
from aitherlog.core.exceptions.custom_exceptions import ConfigurationError
from aitherlog.core.logging.bulk import BulkDispatcher, BulkResult, RequestLike
from aitherlog.core.logging.entry import (
    CallSite,
    EntryBuilder,
    find_caller_frame,
)
from aitherlog.core.logging.formatters import format_entry
from aitherlog.core.logging.levels import LevelLike, LogLevel, is_enabled, normalize_level_name
from aitherlog.core.logging.locks import DEFAULT_LOCK_TIMEOUT, InterProcessFileLock
from aitherlog.core.logging.sinks import ConsoleSink, FileSink, LockFactory
from aitherlog.core.logging.tracer import PerformanceTracer, TraceResult

ENGINE_SOURCE = "LoggingSystem"
MAX_VARIABLE_PREVIEW = 200


class LoggingEngine:
    """
    Multi-sink structured logging engine.

    Args:
        settings: Initial settings; resolved from ``environ`` when omitted
        environ: Variable mapping used for resolution, defaults to
            ``os.environ``
        console: rich Console for the console sink
        lock_factory: Builds the named lock guarding a log file path
        lock_timeout: Seconds to wait for the file lock before falling back
        auto_initialize: Initialize on the first write when not yet done
    """

    def __init__(
        self,
        settings: Optional[LoggingSettings] = None,
        environ: Optional[Mapping[str, str]] = None,
        console: Optional[Console] = None,
        lock_factory: LockFactory = InterProcessFileLock,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
        auto_initialize: bool = False,
    ):
        self.environ = environ
        self.console_sink = ConsoleSink(console)
        self.store = ConfigurationStore(
            settings if settings is not None else self._settings_from_environment()
        )
        self.builder = EntryBuilder(self.store)
        self.file_sink = FileSink(self.store, self.console_sink, lock_factory, lock_timeout)
        self.tracer = PerformanceTracer(self.store, self.write)
        self.bulk = BulkDispatcher(self.store, self._emit)
        self.auto_initialize = auto_initialize

    def _settings_from_environment(self) -> LoggingSettings:
        try:
            return resolve_settings(self.environ)
        except ConfigurationError as e:
            self.console_sink.error(
                "Invalid logging environment, falling back to defaults", e.details
            )
            return resolve_settings({})

    # ------------------------------------------------------------------
    # Lifecycle and configuration
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self.store.initialized

    def initialize(
        self,
        log_path: Optional[Any] = None,
        log_level: Optional[LevelLike] = None,
        console_level: Optional[LevelLike] = None,
        enable_trace: Optional[bool] = None,
        enable_performance: Optional[bool] = None,
        force: bool = False,
        **overrides: Any,
    ) -> LoggingSettings:
        """
        Resolve configuration and start a logging session.

        A no-op returning the active settings when already initialized,
        unless ``force`` is set. The session header and the "initialized"
        entry are written only on an actual (re-)initialization.

        Raises:
            ConfigurationError: If an explicit ``log_path`` is unusable or a
                setting is invalid
        """
        if self.store.initialized and not force:
            return self.store.get()

        settings = resolve_settings(
            self.environ,
            log_file_path=log_path,
            log_level=log_level,
            console_level=console_level,
            enable_trace=enable_trace,
            enable_performance=enable_performance,
            **overrides,
        )
        if log_path is not None:
            self._validate_log_path(settings.log_file_path)

        if not self._start_session(settings, force):
            return self.store.get()
        return settings

    def _start_session(self, settings: LoggingSettings, force: bool = False) -> bool:
        """Install ``settings`` and write the session header; False if another caller won."""
        with self.store.lock:
            if self.store.initialized and not force:
                return False
            self.store.replace(settings)
            self.store.mark_initialized()

        if settings.log_to_file:
            self.file_sink.append(
                self._session_header(settings),
                allow_console_fallback=settings.log_to_console,
            )
        self.write(
            "Logging system initialized",
            level="SUCCESS",
            source=ENGINE_SOURCE,
            context={
                "log_path": str(settings.log_file_path),
                "log_level": settings.log_level.name,
                "console_level": settings.console_level.name,
                "log_format": settings.log_format.value,
            },
        )
        return True

    @staticmethod
    def _validate_log_path(path: Path) -> None:
        if path.is_dir():
            raise ConfigurationError(
                "Log path points to a directory",
                error_code="CONFIG_LOG_PATH_IS_DIRECTORY",
                details={"log_path": str(path)},
            )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                "Log directory cannot be created",
                error_code="CONFIG_LOG_PATH_UNUSABLE",
                details={"log_path": str(path), "error": str(e)},
            ) from e

    @staticmethod
    def _session_header(settings: LoggingSettings) -> str:
        rule = "=" * 80
        return "\n".join(
            [
                rule,
                f"AitherZero Logging Session Started: {datetime.now():%Y-%m-%d %H:%M:%S}",
                f"Platform: {platform.platform()} | Python {platform.python_version()}"
                f" | PID {os.getpid()}",
                f"Log Level: {settings.log_level.name} | Console Level: "
                f"{settings.console_level.name} | Format: {settings.log_format.value}",
                f"Log Path: {settings.log_file_path}",
                rule,
            ]
        )

    def _auto_initialize(self) -> None:
        if self.auto_initialize and not self.store.initialized:
            self._start_session(self.store.get())

    def get_configuration(self) -> LoggingSettings:
        """Return a snapshot of the active settings."""
        return self.store.get()

    def update_configuration(self, **partial: Any) -> LoggingSettings:
        """
        Change only the supplied settings and log the resulting configuration.

        Raises:
            ConfigurationError: If a setting is unknown or invalid
        """
        self._auto_initialize()
        settings = self.store.update(**partial)
        self.write(
            "Logging configuration updated",
            level="INFO",
            source=ENGINE_SOURCE,
            context=settings.model_dump(mode="json"),
        )
        return settings

    def reset(self) -> None:
        """Forget in-flight timers and the initialized flag."""
        self.tracer.clear()
        self.store.mark_initialized(False)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write(
        self,
        message: Any,
        level: LevelLike = "INFO",
        source: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
        additional_data: Optional[Mapping[str, Any]] = None,
        category: Optional[str] = None,
        event_id: Optional[int] = None,
        exception: Any = None,
        no_console: bool = False,
        no_file: bool = False,
    ) -> None:
        """Log ``message``; never raises."""
        try:
            self._emit(
                message,
                level=level,
                source=source,
                context=context,
                additional_data=additional_data,
                category=category,
                event_id=event_id,
                exception=exception,
                no_console=no_console,
                no_file=no_file,
            )
        except Exception as e:
            self._report_failure(e, message)

    def _emit(
        self,
        message: Any,
        level: LevelLike = "INFO",
        source: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
        additional_data: Optional[Mapping[str, Any]] = None,
        category: Optional[str] = None,
        event_id: Optional[int] = None,
        exception: Any = None,
        no_console: bool = False,
        no_file: bool = False,
        call_site: Optional[CallSite] = None,
    ) -> None:
        self._auto_initialize()

        settings = self.store.get()
        level_name = normalize_level_name(level)
        to_console = (
            settings.log_to_console
            and not no_console
            and is_enabled(level_name, settings.console_level)
        )
        to_file = (
            settings.log_to_file
            and not no_file
            and is_enabled(level_name, settings.log_level)
        )
        if not (to_console or to_file):
            return

        entry = self.builder.build(
            message,
            level=level_name,
            source=source,
            context=context,
            additional_data=additional_data,
            category=category,
            event_id=event_id,
            exception=exception,
            call_site=call_site,
        )

        if to_file:
            self.file_sink.append(
                format_entry(entry, settings.log_format),
                allow_console_fallback=settings.log_to_console and not no_console,
            )
        if to_console:
            self.console_sink.emit(entry)

    def _report_failure(self, error: Exception, message: Any) -> None:
        details = {"error": f"{type(error).__name__}: {error}"}
        try:
            self.console_sink.error(f"Failed to write log entry: {message}", details)
        except Exception:
            sys.stderr.write(f"[LOG ERROR] Failed to write log entry: {details['error']}\n")

    def write_trace(
        self,
        message: Any,
        context: Optional[Mapping[str, Any]] = None,
        category: Optional[str] = None,
    ) -> None:
        """TRACE entry, written only while tracing is enabled."""
        if not self.store.get().enable_trace:
            return
        self.write(message, level="TRACE", context=context, category=category or "Trace")

    def write_debug_context(
        self,
        message: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
        scope: str = "Local",
    ) -> None:
        """
        DEBUG entry describing the caller's scope.

        Skipped unless the file threshold is DEBUG or more verbose. When
        ``variables`` is omitted the caller's locals (``scope="Local"``) or
        module globals (``scope="Global"``) are captured.
        """
        if self.store.get().log_level < LogLevel.DEBUG:
            return

        frame = find_caller_frame()
        try:
            context: Dict[str, Any] = {"scope": scope}
            if frame is not None:
                context.update(
                    function=frame.f_code.co_name,
                    script=frame.f_code.co_filename,
                    line=frame.f_lineno,
                )
                if variables is None:
                    namespace = (
                        frame.f_globals if scope.lower() == "global" else frame.f_locals
                    )
                    variables = _preview_variables(namespace)
        finally:
            del frame

        self.write(
            message or "Debug context",
            level="DEBUG",
            context=context,
            additional_data=variables,
            category="Debug",
        )

    def write_bulk(
        self,
        entries: Sequence[RequestLike],
        default_level: LevelLike = "INFO",
        default_context: Optional[Mapping[str, Any]] = None,
        parallel: bool = False,
    ) -> BulkResult:
        """Write a batch of requests; failures are isolated per request."""
        items = list(entries)
        try:
            return self.bulk.dispatch(items, default_level, default_context, parallel)
        except Exception as e:
            self._report_failure(e, f"bulk batch of {len(items)} entries")
            return BulkResult(total=len(items), failed=len(items), errors=[str(e)])

    # ------------------------------------------------------------------
    # Performance tracing and file maintenance
    # ------------------------------------------------------------------

    def start_trace(self, name: str, context: Optional[Mapping[str, Any]] = None) -> None:
        self.tracer.start(name, context)

    def stop_trace(
        self, name: str, additional_context: Optional[Mapping[str, Any]] = None
    ) -> Optional[TraceResult]:
        return self.tracer.stop(name, additional_context)

    def trace(self, name: str, context: Optional[Mapping[str, Any]] = None):
        """Context manager timing the body of a ``with`` block."""
        return self.tracer.trace(name, context)

    def rotate(self) -> bool:
        """Rotate the live log file now."""
        return self.file_sink.rotate_now()

    def get_recent_logs(self, n_lines: int = 100) -> str:
        """Tail of the live log file, empty when it does not exist yet."""
        try:
            return self.file_sink.recent_lines(n_lines)
        except OSError as e:
            return f"Error retrieving logs: {e}"


def _preview_variables(namespace: Mapping[str, Any]) -> Dict[str, str]:
    preview: Dict[str, str] = {}
    for name, value in list(namespace.items()):
        if name.startswith("__"):
            continue
        if inspect.ismodule(value) or inspect.isclass(value) or inspect.isroutine(value):
            continue
        try:
            text = repr(value)
        except Exception:
            text = f"<unrepresentable {type(value).__name__}>"
        if len(text) > MAX_VARIABLE_PREVIEW:
            text = text[: MAX_VARIABLE_PREVIEW - 3] + "..."
        preview[name] = text
    return preview


# ----------------------------------------------------------------------
# Process-wide default engine
# ----------------------------------------------------------------------

_default_engine: Optional[LoggingEngine] = None
_default_engine_lock = threading.Lock()


def get_engine() -> LoggingEngine:
    """Return the default engine, creating it from the environment on first use."""
    global _default_engine
    if _default_engine is None:
        with _default_engine_lock:
            if _default_engine is None:
                _default_engine = LoggingEngine(auto_initialize=True)
    return _default_engine


def set_engine(engine: Optional[LoggingEngine]) -> Optional[LoggingEngine]:
    """Install ``engine`` as the default and return the previous one."""
    global _default_engine
    with _default_engine_lock:
        previous, _default_engine = _default_engine, engine
    return previous


def write(message: Any, level: LevelLike = "INFO", **kwargs: Any) -> None:
    get_engine().write(message, level=level, **kwargs)


def initialize(**kwargs: Any) -> LoggingSettings:
    return get_engine().initialize(**kwargs)


def get_configuration() -> LoggingSettings:
    return get_engine().get_configuration()


def update_configuration(**partial: Any) -> LoggingSettings:
    return get_engine().update_configuration(**partial)


def start_trace(name: str, context: Optional[Mapping[str, Any]] = None) -> None:
    get_engine().start_trace(name, context)


def stop_trace(
    name: str, additional_context: Optional[Mapping[str, Any]] = None
) -> Optional[TraceResult]:
    return get_engine().stop_trace(name, additional_context)


def write_trace(
    message: Any,
    context: Optional[Mapping[str, Any]] = None,
    category: Optional[str] = None,
) -> None:
    get_engine().write_trace(message, context, category)


def write_debug_context(
    message: Optional[str] = None,
    variables: Optional[Mapping[str, Any]] = None,
    scope: str = "Local",
) -> None:
    get_engine().write_debug_context(message, variables, scope)


def write_bulk(
    entries: Sequence[RequestLike],
    default_level: LevelLike = "INFO",
    default_context: Optional[Mapping[str, Any]] = None,
    parallel: bool = False,
) -> BulkResult:
    return get_engine().write_bulk(entries, default_level, default_context, parallel)


def get_recent_logs(n_lines: int = 100) -> str:
    return get_engine().get_recent_logs(n_lines)
