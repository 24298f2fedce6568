"""Tests for the bounded activity log."""

import pytest

from autotrader.activity.log import ActivityEntry, ActivityKind, ActivityLog


def _entry(kind: ActivityKind = ActivityKind.SKIPPED, reason: str = "feed_unavailable") -> ActivityEntry:
    return ActivityEntry(kind, reason)


def test_oldest_entries_are_evicted() -> None:
    log = ActivityLog(capacity=3)
    for i in range(5):
        log.append(_entry(reason=f"r{i}"))

    assert len(log) == 3
    assert [e.reason for e in log.entries()] == ["r2", "r3", "r4"]
    assert log.total_appended == 5
    assert log.capacity == 3


def test_entries_filter_and_limit() -> None:
    log = ActivityLog()
    log.extend([
        _entry(ActivityKind.EXECUTED, "open_long"),
        _entry(ActivityKind.REJECTED, "max_open_positions"),
        _entry(ActivityKind.EXECUTED, "stop_loss"),
    ])

    executed = log.entries(kind=ActivityKind.EXECUTED)
    assert [e.reason for e in executed] == ["open_long", "stop_loss"]
    assert [e.reason for e in log.entries(limit=1)] == ["stop_loss"]
    assert log.entries(limit=0) == ()


def test_entries_is_a_snapshot() -> None:
    log = ActivityLog()
    log.append(_entry())
    snapshot = log.entries()
    log.append(_entry())
    assert isinstance(snapshot, tuple)
    assert len(snapshot) == 1


def test_entries_are_immutable() -> None:
    entry = _entry()
    with pytest.raises(AttributeError):
        entry.reason = "changed"  # type: ignore[misc]


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ActivityLog(capacity=0)
