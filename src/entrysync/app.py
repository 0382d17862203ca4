"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import cache
from logging import getLogger
from typing import TYPE_CHECKING

from entrysync.adapters.batch import parse_batch
from entrysync.adapters.duplicate_cache import InMemoryDuplicateCache, RedisDuplicateCache
from entrysync.adapters.reporting import CounterMetrics, LoggingErrorReporter, RedisMetrics
from entrysync.adapters.sanitizer import BeautifulSoupSanitizer
from entrysync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReceiverUnitOfWork,
    is_started,
    startup,
)
from entrysync.config import CacheConfig, ReceiverConfig, get_cache_config, get_receiver_config
from entrysync.domain.ports.unit_of_work import ReceiverUnitOfWork
from entrysync.domain.reconciliation import (
    EntryReconciler,
    NotificationFanout,
    SignificanceDetector,
    ThreadResolver,
    UpdateMerger,
)
from entrysync.domain.reconciliation.contracts import Clock, utcnow

if TYPE_CHECKING:
    from collections.abc import Mapping

    from entrysync.domain.ports import DuplicateCache, ErrorReporter, Metrics, Sanitizer
    from entrysync.domain.reconciliation import BatchResult

UnitOfWorkFactory = Callable[[], ReceiverUnitOfWork]


log = getLogger(__name__)


@dataclass(slots=True)
class ReceiverServices:
    """Collaborators the reconciler talks to besides the record store."""

    cache: DuplicateCache
    sanitizer: Sanitizer
    metrics: Metrics
    errors: ErrorReporter


def build_services(cache_config: CacheConfig | None = None) -> ReceiverServices:
    """Create services from configuration: redis when ``REDIS_URL`` is set, else in-process."""

    config = cache_config or get_cache_config()
    duplicate_cache: DuplicateCache
    metrics: Metrics
    if config.redis_url is not None:
        log.info("Using redis duplicate cache and counters")
        duplicate_cache = RedisDuplicateCache.from_url(
            config.redis_url,
            ttl=config.ttl,
            key_prefix=config.key_prefix,
        )
        metrics = RedisMetrics.from_url(config.redis_url, prefix=config.metrics_prefix)
    else:
        log.info("REDIS_URL not set; duplicate suppression is local to this process")
        duplicate_cache = InMemoryDuplicateCache(ttl=config.ttl)
        metrics = CounterMetrics()
    return ReceiverServices(
        cache=duplicate_cache,
        sanitizer=BeautifulSoupSanitizer(),
        metrics=metrics,
        errors=LoggingErrorReporter(),
    )


def build_reconciler(
    services: ReceiverServices,
    *,
    config: ReceiverConfig | None = None,
    clock: Clock = utcnow,
) -> EntryReconciler:
    receiver_config = config or get_receiver_config()
    significance = SignificanceDetector(
        sanitizer=services.sanitizer,
        errors=services.errors,
        threshold=receiver_config.significant_change,
    )
    fanout = NotificationFanout(metrics=services.metrics, errors=services.errors)
    updates = UpdateMerger(
        sanitizer=services.sanitizer,
        significance=significance,
        fanout=fanout,
        metrics=services.metrics,
        config=receiver_config,
        clock=clock,
    )
    return EntryReconciler(
        cache=services.cache,
        threads=ThreadResolver(clock=clock),
        updates=updates,
        sanitizer=services.sanitizer,
        metrics=services.metrics,
        errors=services.errors,
        summary_length=receiver_config.summary_length,
        clock=clock,
    )


@cache
def default_reconciler() -> EntryReconciler:
    """Process-wide reconciler so the in-memory cache survives between batches."""

    return build_reconciler(build_services())


def initialize_database(*, database_uri: str | None = None) -> None:
    """Create the schema if needed and bind the default unit of work."""

    if not is_started():
        startup(database_uri=database_uri)


def receive_batch(
    payload: Mapping[str, object],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    reconciler: EntryReconciler | None = None,
) -> BatchResult:
    """Validate and reconcile one feed refresh batch."""

    batch = parse_batch(payload)
    if unit_of_work_factory is None:
        initialize_database()
        unit_of_work_factory = SqlAlchemyReceiverUnitOfWork
    effective_reconciler = reconciler or default_reconciler()

    log.info("Receiving batch for feed %s with %s item(s)", batch.feed_id, len(batch.entries))
    with unit_of_work_factory() as uow:
        return effective_reconciler.reconcile(uow, batch)
