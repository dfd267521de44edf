"""
Pytest configuration and fixtures for aitherlog tests
"""

import io
from pathlib import Path
from typing import Any, Callable

import pytest
from rich.console import Console

from aitherlog.core.config.settings import LoggingSettings, resolve_settings
from aitherlog.core.config.store import ConfigurationStore
from aitherlog.core.logging.engine import LoggingEngine, set_engine
from aitherlog.core.logging.locks import ProcessLocalLock
from aitherlog.core.logging.sinks import ConsoleSink


@pytest.fixture
def log_path(tmp_path) -> Path:
    """Live log file inside a directory that does not exist yet"""
    return tmp_path / "logs" / "aitherzero.log"


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(console_buffer) -> Console:
    """Plain-text console writing into console_buffer"""
    return Console(
        file=console_buffer,
        width=200,
        color_system=None,
        force_terminal=False,
        highlight=False,
    )


@pytest.fixture
def make_settings(log_path) -> Callable[..., LoggingSettings]:
    """Build settings from defaults only, pointing at log_path"""

    def _make(**overrides: Any) -> LoggingSettings:
        overrides.setdefault("log_file_path", str(log_path))
        return resolve_settings({}, **overrides)

    return _make


@pytest.fixture
def make_engine(make_settings, console) -> Callable[..., LoggingEngine]:
    """Build an engine isolated from the process environment"""

    def _make(**overrides: Any) -> LoggingEngine:
        return LoggingEngine(
            settings=make_settings(**overrides),
            environ={},
            console=console,
            lock_factory=ProcessLocalLock,
        )

    return _make


@pytest.fixture
def engine(make_engine) -> LoggingEngine:
    return make_engine()


@pytest.fixture
def default_engine(engine):
    """Install ``engine`` as the process-wide default for the test"""
    previous = set_engine(engine)
    yield engine
    set_engine(previous)


@pytest.fixture
def store(make_settings) -> ConfigurationStore:
    return ConfigurationStore(make_settings())


@pytest.fixture
def console_sink(console) -> ConsoleSink:
    return ConsoleSink(console)


def read_lines(path: Path):
    """Non-empty lines of a log file"""
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line]


@pytest.fixture
def log_lines(log_path) -> Callable[[], list]:
    return lambda: read_lines(log_path) if log_path.exists() else []
