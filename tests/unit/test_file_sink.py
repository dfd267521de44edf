"""
Unit tests for the rotating file sink
"""

import os
import threading

from aitherlog.core.config.store import ConfigurationStore
from aitherlog.core.logging.locks import InterProcessFileLock, ProcessLocalLock
from aitherlog.core.logging.sinks import FileSink


def _sink(store, console_sink, **kwargs):
    kwargs.setdefault("lock_factory", ProcessLocalLock)
    return FileSink(store, console_sink, **kwargs)


def test_append_creates_parent_directory(store, console_sink, log_path):
    assert not log_path.parent.exists()

    assert _sink(store, console_sink).append("first") is True

    assert log_path.read_text(encoding="utf-8") == "first\n"


def test_lock_timeout_falls_back_to_console(store, console_sink, log_path, console_buffer):
    sink = _sink(store, console_sink, lock_timeout=0.05)
    blocker = ProcessLocalLock(os.path.normcase(os.path.abspath(log_path)))

    assert blocker.acquire(timeout=0.1)
    try:
        assert sink.append("lost line") is False
    finally:
        blocker.release()

    output = console_buffer.getvalue()
    assert "[LOG ERROR] Failed to write to log file: lost line" in output
    assert "Timed out waiting for log file lock" in output
    assert not log_path.exists()


def test_console_fallback_can_be_suppressed(store, console_sink, log_path, console_buffer):
    sink = _sink(store, console_sink, lock_timeout=0.05)
    blocker = ProcessLocalLock(os.path.normcase(os.path.abspath(log_path)))

    assert blocker.acquire(timeout=0.1)
    try:
        assert sink.append("lost line", allow_console_fallback=False) is False
    finally:
        blocker.release()

    assert console_buffer.getvalue() == ""


def test_io_error_falls_back_to_console(make_settings, console_sink, tmp_path, console_buffer):
    blocked = tmp_path / "not-a-dir"
    blocked.write_text("file in the way")
    store = ConfigurationStore(make_settings(log_file_path=str(blocked / "app.log")))

    assert _sink(store, console_sink).append("x") is False
    assert "[LOG ERROR]" in console_buffer.getvalue()


def test_oversized_file_is_rotated_before_append(make_settings, console_sink, log_path):
    store = ConfigurationStore(make_settings(max_file_size_mb=0.0001, max_files=2))
    log_path.parent.mkdir(parents=True)
    log_path.write_text("x" * 200 + "\n", encoding="utf-8")

    assert _sink(store, console_sink).append("fresh") is True

    assert log_path.read_text(encoding="utf-8") == "fresh\n"
    assert log_path.with_name("aitherzero.log.1").read_text(encoding="utf-8").startswith("x")


def test_file_under_limit_is_not_rotated(store, console_sink, log_path):
    sink = _sink(store, console_sink)
    sink.append("one")
    sink.append("two")

    assert log_path.read_text(encoding="utf-8") == "one\ntwo\n"
    assert not log_path.with_name("aitherzero.log.1").exists()


def test_rotate_now(store, console_sink, log_path):
    sink = _sink(store, console_sink)
    sink.append("before")

    assert sink.rotate_now() is True

    assert not log_path.exists()
    assert log_path.with_name("aitherzero.log.1").read_text(encoding="utf-8") == "before\n"


def test_recent_lines(store, console_sink, log_path):
    sink = _sink(store, console_sink)
    assert sink.recent_lines(5) == ""

    for i in range(10):
        sink.append(f"line-{i}")

    assert sink.recent_lines(3) == "line-7\nline-8\nline-9\n"
    assert sink.recent_lines(0) == ""


def test_concurrent_appends_produce_whole_lines(store, console_sink, log_path):
    sink = FileSink(store, console_sink, lock_factory=InterProcessFileLock, lock_timeout=10)
    threads_count, per_thread = 10, 100
    failures = []

    def worker(thread_index):
        for i in range(per_thread):
            if not sink.append(f"thread-{thread_index:02d} message-{i:03d} end"):
                failures.append((thread_index, i))

    threads = [threading.Thread(target=worker, args=(t,)) for t in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert failures == []
    assert len(lines) == threads_count * per_thread
    assert len(set(lines)) == threads_count * per_thread
    assert all(line.startswith("thread-") and line.endswith(" end") for line in lines)
