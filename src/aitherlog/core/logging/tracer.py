"""
Named performance timers.

A timer is started and stopped by name. ``start`` is an upsert: starting a
name that is already in flight replaces the earlier counter. ``stop`` on a
name that is not in flight returns None without logging. Both emit TRACE
entries through the engine, so they reach a sink only when its threshold is
TRACE or more verbose.
"""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from aitherlog.core.config.store import ConfigurationStore
from aitherlog.core.logging.entry import merge_context

PERFORMANCE_CATEGORY = "Performance"


@dataclass(frozen=True)
class PerformanceCounter:
    """An in-flight timer."""

    operation: str
    start_time: datetime
    start_ns: int
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TraceResult:
    """Outcome of a completed timer."""

    operation: str
    elapsed_milliseconds: float
    elapsed_nanoseconds: int
    start_time: datetime
    end_time: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "elapsed_milliseconds": self.elapsed_milliseconds,
            "elapsed_nanoseconds": self.elapsed_nanoseconds,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }


class PerformanceTracer:
    """Lock-guarded table of named timers."""

    def __init__(self, store: ConfigurationStore, write: Callable[..., None]):
        self.store = store
        self._write = write
        self._counters: Dict[str, PerformanceCounter] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.store.get().enable_performance

    def start(self, name: str, context: Optional[Mapping[str, Any]] = None) -> None:
        """Start (or restart) the timer called ``name``."""
        if not self.enabled:
            return

        counter = PerformanceCounter(
            operation=name,
            start_time=datetime.now(),
            start_ns=time.perf_counter_ns(),
            context=dict(context or {}),
        )
        with self._lock:
            self._counters[name] = counter

        self._write(
            f"Performance trace started: {name}",
            level="TRACE",
            context=counter.context,
            category=PERFORMANCE_CATEGORY,
        )

    def stop(
        self, name: str, additional_context: Optional[Mapping[str, Any]] = None
    ) -> Optional[TraceResult]:
        """Stop the timer called ``name`` and return its elapsed time."""
        end_ns = time.perf_counter_ns()
        with self._lock:
            counter = self._counters.pop(name, None)
        if counter is None or not self.enabled:
            return None

        elapsed_ns = end_ns - counter.start_ns
        result = TraceResult(
            operation=name,
            elapsed_milliseconds=elapsed_ns / 1_000_000,
            elapsed_nanoseconds=elapsed_ns,
            start_time=counter.start_time,
            end_time=datetime.now(),
        )

        self._write(
            f"Performance trace completed: {name} ({result.elapsed_milliseconds:.2f} ms)",
            level="TRACE",
            context=merge_context(
                counter.context,
                additional_context,
                {"elapsed_ms": round(result.elapsed_milliseconds, 3)},
            ),
            category=PERFORMANCE_CATEGORY,
        )
        return result

    @contextmanager
    def trace(
        self, name: str, context: Optional[Mapping[str, Any]] = None
    ) -> Iterator[None]:
        """Time the body of a ``with`` block."""
        self.start(name, context)
        try:
            yield
        finally:
            self.stop(name)

    def active(self) -> List[str]:
        with self._lock:
            return sorted(self._counters)

    def clear(self) -> None:
        with self._lock:
            self._counters.clear()
