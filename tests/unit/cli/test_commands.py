"""
Unit tests for CLI functionality
"""

import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from aitherlog.cli import main as cli_main
from aitherlog.cli.commands import config as config_cmd
from aitherlog.cli.main import app
from aitherlog.core.logging.engine import LoggingEngine, set_engine
from aitherlog.core.logging.levels import LogLevel
from aitherlog.core.logging.locks import ProcessLocalLock

runner = CliRunner()


@pytest.fixture
def wide_output(monkeypatch):
    """Keep rich tables on one line per row"""
    monkeypatch.setattr(cli_main, "console", Console(width=250))
    monkeypatch.setattr(config_cmd, "console", Console(width=250))


def test_help_command():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Structured logging" in result.stdout


def test_version_command(default_engine, wide_output):
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "aitherlog" in result.output
    assert "Version" in result.output


def test_write_command(default_engine, log_lines):
    result = runner.invoke(
        app,
        [
            "write",
            "Deploy started",
            "--level",
            "WARNING",
            "--source",
            "deploy",
            "--context",
            "lab=dev-01",
            "--context",
            "nodes=3",
            "--category",
            "Lab",
            "--event-id",
            "12",
        ],
    )

    assert result.exit_code == 0
    (line,) = log_lines()
    assert "[WARN]" in line
    assert "[deploy]" in line
    assert "[Lab] [EventId:12] Deploy started {lab=dev-01, nodes=3}" in line


def test_write_command_no_file(default_engine, log_path):
    result = runner.invoke(app, ["write", "console only", "--no-file"])
    assert result.exit_code == 0
    assert not log_path.exists()


def test_write_command_rejects_bad_context(default_engine, log_path):
    result = runner.invoke(app, ["write", "x", "--context", "novalue"])
    assert result.exit_code == 1
    assert "key=value" in result.stdout
    assert not log_path.exists()


def test_write_command_rejects_bad_level(default_engine):
    result = runner.invoke(app, ["write", "x", "--level", "LOUD"])
    assert result.exit_code == 1
    assert "Unknown log level" in result.stdout


def test_verbose_lowers_console_threshold(default_engine):
    result = runner.invoke(app, ["--verbose", "write", "dbg", "--level", "DEBUG"])
    assert result.exit_code == 0
    assert default_engine.get_configuration().console_level == LogLevel.DEBUG


def test_verbose_survives_auto_initialization(console, console_buffer, log_path):
    engine = LoggingEngine(
        environ={"AITHERZERO_LOG_PATH": str(log_path)},
        console=console,
        lock_factory=ProcessLocalLock,
        auto_initialize=True,
    )
    previous = set_engine(engine)
    try:
        result = runner.invoke(app, ["--verbose", "write", "dbg-line", "--level", "DEBUG"])
    finally:
        set_engine(previous)

    assert result.exit_code == 0
    assert engine.initialized
    assert engine.get_configuration().console_level == LogLevel.DEBUG
    assert "dbg-line" in console_buffer.getvalue()


def test_logs_tail(default_engine):
    default_engine.write("hello tail")

    result = runner.invoke(app, ["logs", "tail", "--lines", "5"])
    assert result.exit_code == 0
    assert "hello tail" in result.stdout


def test_logs_tail_without_file(default_engine):
    result = runner.invoke(app, ["logs", "tail"])
    assert result.exit_code == 0
    assert "No log entries" in result.stdout


def test_logs_rotate(default_engine, log_path):
    default_engine.write("before rotation")

    result = runner.invoke(app, ["logs", "rotate"])
    assert result.exit_code == 0
    assert "Rotated" in result.stdout
    assert log_path.with_name("aitherzero.log.1").exists()


def test_logs_bulk_from_json_lines(default_engine, tmp_path, log_lines):
    requests = tmp_path / "requests.jsonl"
    requests.write_text(
        "\n".join(
            json.dumps({"message": f"bulk-{i}", "context": {"i": i}}) for i in range(3)
        )
    )

    result = runner.invoke(app, ["logs", "bulk", str(requests), "--level", "WARN"])

    assert result.exit_code == 0
    assert "Bulk Write Summary" in result.stdout
    lines = log_lines()
    assert len(lines) == 3
    assert all("[WARN]" in line for line in lines)


def test_logs_bulk_reports_failures(default_engine, tmp_path):
    requests = tmp_path / "requests.json"
    requests.write_text(json.dumps([{"message": "ok"}, {"nope": 1}]))

    result = runner.invoke(app, ["logs", "bulk", str(requests)])
    assert result.exit_code == 1


def test_logs_bulk_invalid_json(default_engine, tmp_path):
    requests = tmp_path / "broken.jsonl"
    requests.write_text("{not json")

    result = runner.invoke(app, ["logs", "bulk", str(requests)])
    assert result.exit_code == 1
    assert "Invalid JSON" in result.stdout


def test_config_show(default_engine, wide_output):
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert "AitherZero Logging Configuration" in result.stdout
    assert "AITHERZERO_LOG_LEVEL / LAB_LOG_LEVEL" in result.stdout
    assert "Initialized: False" in result.stdout


def test_config_init(default_engine, tmp_path):
    target = tmp_path / "session" / "lab.log"

    result = runner.invoke(
        app, ["config", "init", "--log-path", str(target), "--log-level", "debug"]
    )

    assert result.exit_code == 0
    assert default_engine.initialized
    assert default_engine.get_configuration().log_level == LogLevel.DEBUG
    assert "AitherZero Logging Session Started" in target.read_text(encoding="utf-8")


def test_config_init_rejects_directory(default_engine, tmp_path):
    result = runner.invoke(app, ["config", "init", "--log-path", str(tmp_path)])
    assert result.exit_code == 1
    assert "directory" in result.stdout
