"""
Unit tests for batch ingestion
"""

import pytest

from aitherlog.core.logging.bulk import BulkLogRequest, to_request


def _messages(lines):
    return [line.split("] ")[-1].split(" {")[0] for line in lines]


def test_parallel_batch_writes_every_entry_once(engine, log_lines):
    entries = [{"message": f"bulk-{i:02d}"} for i in range(15)]

    result = engine.write_bulk(entries, parallel=True)

    assert result.parallel is True
    assert (result.total, result.processed, result.failed) == (15, 15, 0)
    lines = log_lines()
    assert len(lines) == 15
    assert sorted(_messages(lines)) == [f"bulk-{i:02d}" for i in range(15)]


def test_small_parallel_batch_runs_in_order(engine, log_lines):
    entries = [f"seq-{i}" for i in range(10)]

    result = engine.write_bulk(entries, parallel=True)

    assert result.parallel is False
    assert _messages(log_lines()) == entries


def test_sequential_batch_preserves_order(engine, log_lines):
    entries = [BulkLogRequest(message=f"ordered-{i}") for i in range(25)]

    engine.write_bulk(entries)

    assert _messages(log_lines()) == [f"ordered-{i}" for i in range(25)]


def test_defaults_and_overrides(engine, log_lines):
    engine.write_bulk(
        [
            {"message": "uses defaults"},
            {"message": "overrides", "level": "ERROR", "context": {"run": "r2"}},
        ],
        default_level="WARN",
        default_context={"run": "r1", "lab": "dev"},
    )

    first, second = log_lines()
    assert "[WARN]" in first and "{run=r1, lab=dev}" in first
    assert "[ERROR]" in second and "{run=r2, lab=dev}" in second


def test_malformed_entries_are_isolated(engine, log_lines):
    entries = [
        {"message": "good"},
        {"text": "no message key"},
        {"message": "bad level", "level": "LOUD"},
        42,
    ]

    result = engine.write_bulk(entries)

    assert (result.total, result.processed, result.failed) == (4, 1, 3)
    assert len(result.errors) == 3
    assert len(log_lines()) == 1


def test_malformed_entries_are_isolated_in_parallel(engine, log_lines):
    entries = [{"message": f"ok-{i}"} for i in range(12)] + [{"level": "INFO"}]

    result = engine.write_bulk(entries, parallel=True)

    assert result.processed == 12
    assert result.failed == 1
    assert len(log_lines()) == 12


def test_generator_batch_with_bad_default_level_does_not_raise(engine, log_lines):
    result = engine.write_bulk((f"gen-{i}" for i in range(3)), default_level="LOUD")

    assert (result.total, result.processed, result.failed) == (3, 0, 3)
    assert log_lines() == []


def test_empty_batch(engine):
    result = engine.write_bulk([])
    assert (result.total, result.processed, result.failed) == (0, 0, 0)


def test_bulk_entries_report_the_calling_function(engine, log_lines):
    engine.write_bulk(["from caller"] * 12, parallel=True)

    assert all("[test_bulk_entries_report_the_calling_function]" in line for line in log_lines())


def test_to_request():
    assert to_request("plain") == BulkLogRequest(message="plain")
    assert to_request({"message": "m", "level": "DEBUG"}).level == "DEBUG"
    with pytest.raises(ValueError):
        to_request({})
    with pytest.raises(TypeError):
        to_request(3.5)
