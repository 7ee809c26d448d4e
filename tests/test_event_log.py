"""
Tests for the append-only JSONL event log.
"""

import json

import pytest

from qai.errors import HistoryError
from qai.history import EventLog, QueryRecord


def _record(query, results=("ls",)):
    return QueryRecord.create(query, list(results), "gpt-4o-mini")


def test_read_all_missing_file(tmp_path):
    """A log that was never written reads as empty."""
    log = EventLog(tmp_path / "history.jsonl")
    assert log.read_all() == []
    assert log.count_lines() == 0


def test_append_creates_file_and_writes_one_line(tmp_path):
    """Each append adds exactly one JSON line."""
    path = tmp_path / "history.jsonl"
    log = EventLog(path)

    log.append(_record("first"))
    log.append(_record("second"))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0])["query"] == "first"
    assert json.loads(lines[1])["query"] == "second"


def test_append_never_rewrites(tmp_path):
    """Existing content is kept byte for byte."""
    path = tmp_path / "history.jsonl"
    log = EventLog(path)
    log.append(_record("first"))
    before = path.read_bytes()

    log.append(_record("second"))

    assert path.read_bytes().startswith(before)


def test_read_all_roundtrip(tmp_path):
    """Records read back equal the records written, in order."""
    log = EventLog(tmp_path / "history.jsonl")
    records = [_record(f"query {i}") for i in range(3)]
    for record in records:
        log.append(record)

    assert log.read_all() == records


def test_read_all_skips_blank_and_corrupt_lines(tmp_path):
    """Blank and unparsable lines are ignored."""
    path = tmp_path / "history.jsonl"
    log = EventLog(path)
    log.append(_record("good one"))
    with open(path, "a", encoding="utf-8") as f:
        f.write("\n")
        f.write("{not json\n")
        f.write('{"query": "missing fields"}\n')
    log.append(_record("good two"))

    queries = [r.query for r in log.read_all()]

    assert queries == ["good one", "good two"]


def test_count_lines_includes_unparsable_lines(tmp_path):
    """count_lines is a raw line count."""
    path = tmp_path / "history.jsonl"
    log = EventLog(path)
    log.append(_record("good"))
    with open(path, "a", encoding="utf-8") as f:
        f.write("garbage\n")

    assert log.count_lines() == 2


def test_read_recent_returns_tail_in_order(tmp_path):
    """read_recent(3) over 5 records gives the last three, oldest first."""
    log = EventLog(tmp_path / "history.jsonl")
    for i in range(5):
        log.append(_record(f"q{i}"))

    assert [r.query for r in log.read_recent(3)] == ["q2", "q3", "q4"]


def test_read_recent_limits(tmp_path):
    """Zero gives nothing, more than available gives everything."""
    log = EventLog(tmp_path / "history.jsonl")
    for i in range(2):
        log.append(_record(f"q{i}"))

    assert log.read_recent(0) == []
    assert [r.query for r in log.read_recent(10)] == ["q0", "q1"]


def test_delete_tolerates_missing_file(tmp_path):
    """Deleting twice is fine."""
    path = tmp_path / "history.jsonl"
    log = EventLog(path)
    log.append(_record("q"))

    log.delete()
    log.delete()

    assert not path.exists()


def test_append_failure_raises_history_error(tmp_path):
    """Write failures propagate as HistoryError."""
    log = EventLog(tmp_path / "missing-dir" / "history.jsonl")
    with pytest.raises(HistoryError) as exc_info:
        log.append(_record("q"))
    assert isinstance(exc_info.value.__cause__, OSError)
