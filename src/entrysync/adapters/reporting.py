"""Error and counter sinks."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Final

import redis

from entrysync.config.cache import DEFAULT_METRICS_PREFIX

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

log = logging.getLogger(__name__)

COUNTER_EXPIRY_DAYS: Final[int] = 60


class LoggingErrorReporter:
    """Send reports to the ``entrysync.errors`` logger at error level."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("entrysync.errors")

    def report(self, category: str, message: str, context: Mapping[str, object]) -> None:
        details = {key: value for key, value in context.items() if key != "backtrace"}
        backtrace = context.get("backtrace")
        if backtrace:
            self.logger.error("[%s] %s %s\n%s", category, message, details, backtrace)
        else:
            self.logger.error("[%s] %s %s", category, message, details)


class CounterMetrics:
    """In-process counters; the default when no redis is configured."""

    def __init__(self) -> None:
        self.counts: Counter[str] = Counter()

    def increment(self, name: str) -> None:
        self.counts[name] += 1
        log.debug("metric %s=%s", name, self.counts[name])

    def snapshot(self) -> dict[str, int]:
        return dict(self.counts)


class RedisMetrics:
    """Daily and all-time counters in redis.

    Key structure:
    - {prefix}:{date}:{name} - daily count, expires after 60 days
    - {prefix}:alltime:{name} - cumulative count
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        prefix: str = DEFAULT_METRICS_PREFIX,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.client = client
        self.prefix = prefix
        self._clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_url(cls, url: str, *, prefix: str = DEFAULT_METRICS_PREFIX) -> RedisMetrics:
        return cls(redis.Redis.from_url(url), prefix=prefix)

    def increment(self, name: str) -> None:
        today = self._clock().date()
        daily_key = f"{self.prefix}:{today:%Y-%m-%d}:{name}"
        expiry = datetime.combine(
            today + timedelta(days=COUNTER_EXPIRY_DAYS),
            datetime.min.time(),
            tzinfo=UTC,
        )
        try:
            pipe = self.client.pipeline()
            pipe.incr(daily_key)
            pipe.expireat(daily_key, expiry)
            pipe.incr(f"{self.prefix}:alltime:{name}")
            pipe.execute()
        except redis.RedisError as exc:
            log.warning("Failed to increment %s: %r", name, exc)


if TYPE_CHECKING:
    from entrysync.domain.ports import ErrorReporter, Metrics

    _reporter_check: ErrorReporter = LoggingErrorReporter()
    _counter_check: Metrics = CounterMetrics()
    _redis_metrics_check: Metrics = RedisMetrics(redis.Redis())
