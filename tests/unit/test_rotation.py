"""
Unit tests for the rotation cascade
"""

import os

import pytest

from aitherlog.core.logging.rotation import existing_backups, rotate_log_files


@pytest.fixture
def base(tmp_path):
    return tmp_path / "app.log"


def _write(path, text):
    path.write_text(text, encoding="utf-8")


def _sibling(base, index):
    return base.with_name(f"{base.name}.{index}")


def test_cascade_with_retention_three(base):
    _write(base, "current")
    _write(_sibling(base, 1), "one")
    _write(_sibling(base, 2), "two")
    _write(_sibling(base, 10), "stale")

    errors = rotate_log_files(base, 3)

    assert errors == []
    assert not base.exists()
    assert _sibling(base, 1).read_text() == "current"
    assert _sibling(base, 2).read_text() == "one"
    assert _sibling(base, 3).read_text() == "two"
    assert not _sibling(base, 10).exists()
    assert existing_backups(base) == [1, 2, 3]


def test_oldest_backup_is_dropped(base):
    _write(base, "current")
    for i in range(1, 4):
        _write(_sibling(base, i), f"backup-{i}")

    rotate_log_files(base, 3)

    assert existing_backups(base) == [1, 2, 3]
    assert _sibling(base, 3).read_text() == "backup-2"


def test_gaps_do_not_abort_cascade(base):
    _write(base, "current")
    _write(_sibling(base, 2), "two")

    assert rotate_log_files(base, 3) == []

    assert _sibling(base, 1).read_text() == "current"
    assert not _sibling(base, 2).exists()
    assert _sibling(base, 3).read_text() == "two"


def test_retention_zero_keeps_previous_file_until_next_cycle(base):
    _write(base, "first")
    _write(_sibling(base, 2), "old")

    rotate_log_files(base, 0)

    assert _sibling(base, 1).read_text() == "first"
    assert not _sibling(base, 2).exists()

    _write(base, "second")
    rotate_log_files(base, 0)

    assert _sibling(base, 1).read_text() == "second"
    assert existing_backups(base) == [1]


def test_missing_live_file_is_not_an_error(base):
    assert rotate_log_files(base, 5) == []
    assert existing_backups(base) == []


def test_unrelated_siblings_are_untouched(base):
    _write(base, "current")
    other = base.with_name("app.log.bak")
    _write(other, "keep")
    _write(base.with_name("app.log.0"), "zero")

    rotate_log_files(base, 1)

    assert other.read_text() == "keep"
    assert base.with_name("app.log.0").read_text() == "zero"


@pytest.mark.skipif(os.name != "posix", reason="directory rename semantics differ")
def test_step_failures_are_reported_and_cascade_continues(base):
    _write(base, "current")
    _sibling(base, 1).mkdir()
    (_sibling(base, 1) / "blocker").write_text("x")
    _write(_sibling(base, 5), "stale")

    reported = []
    errors = rotate_log_files(base, 1, on_error=reported.append)

    assert len(errors) == 1
    assert reported == errors
    assert errors[0].error_code == "ROTATION_STEP_FAILED"
    assert base.read_text() == "current"
    assert not _sibling(base, 5).exists()
