from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, cast

import redis

from entrysync.adapters.reporting import CounterMetrics, LoggingErrorReporter, RedisMetrics
from tests.helpers.receiver import fixed_clock

if TYPE_CHECKING:
    import pytest


class _StubPipeline:
    def __init__(self, client: _StubRedis) -> None:
        self.client = client
        self.commands: list[tuple[object, ...]] = []

    def incr(self, key: str) -> None:
        self.commands.append(("incr", key))

    def expireat(self, key: str, when: datetime) -> None:
        self.commands.append(("expireat", key, when))

    def execute(self) -> list[object]:
        if self.client.fail:
            raise redis.ConnectionError("redis is down")
        self.client.commands.extend(self.commands)
        return []


class _StubRedis:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.commands: list[tuple[object, ...]] = []

    def pipeline(self) -> _StubPipeline:
        return _StubPipeline(self)


def test_counter_metrics_counts() -> None:
    metrics = CounterMetrics()

    metrics.increment("entry.create")
    metrics.increment("entry.create")
    metrics.increment("entry.update")

    assert metrics.snapshot() == {"entry.create": 2, "entry.update": 1}


def test_redis_metrics_writes_daily_and_alltime_counters() -> None:
    client = _StubRedis()
    metrics = RedisMetrics(cast("redis.Redis", client), prefix="stats", clock=fixed_clock)

    metrics.increment("entry.create")

    assert client.commands == [
        ("incr", "stats:2025-03-01:entry.create"),
        ("expireat", "stats:2025-03-01:entry.create", datetime(2025, 4, 30, tzinfo=UTC)),
        ("incr", "stats:alltime:entry.create"),
    ]


def test_redis_metrics_failures_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    metrics = RedisMetrics(cast("redis.Redis", _StubRedis(fail=True)), clock=fixed_clock)

    with caplog.at_level(logging.WARNING, logger="entrysync.adapters.reporting"):
        metrics.increment("entry.create")

    assert "Failed to increment entry.create" in caplog.text


def test_logging_error_reporter_includes_backtrace(caplog: pytest.LogCaptureFixture) -> None:
    reporter = LoggingErrorReporter()

    with caplog.at_level(logging.ERROR, logger="entrysync.errors"):
        reporter.report(
            "reconcile.create",
            "Entry create failed",
            {"feed_id": 1, "backtrace": "Traceback: boom"},
        )

    record = caplog.records[0]
    assert record.name == "entrysync.errors"
    assert "[reconcile.create] Entry create failed {'feed_id': 1}" in record.getMessage()
    assert "Traceback: boom" in record.getMessage()


def test_logging_error_reporter_without_backtrace(caplog: pytest.LogCaptureFixture) -> None:
    reporter = LoggingErrorReporter()

    with caplog.at_level(logging.ERROR, logger="entrysync.errors"):
        reporter.report("reconcile.fanout", "Update notification fanout failed", {"entry_id": 3})

    assert caplog.records[0].getMessage() == (
        "[reconcile.fanout] Update notification fanout failed {'entry_id': 3}"
    )
