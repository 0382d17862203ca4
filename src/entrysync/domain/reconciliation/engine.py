"""Orchestrator for reconciling a feed batch against the entry store.

Every item is routed independently:

- unknown ``public_id``: skipped when its declared alternate is already cached,
  otherwise threaded into an existing conversation or created,
- known ``public_id`` with ``update`` set: merged (see :mod:`.updates`),
- known ``public_id`` otherwise: a re-delivery, only the duplicate cache is touched.

Each item is committed on its own; a failing item is rolled back and reported
without affecting the others. The feed's descriptive fields are written last,
whatever happened to the items. A failure to register an item in the duplicate
cache is reported on its own and leaves the item's outcome untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from entrysync.domain.errors import (
    FeedNotFoundError,
    RecordNotUniqueError,
    RecordValidationError,
)
from entrysync.domain.model import Entry, IncomingEntry, RejectedEntry

from .contracts import (
    BatchResult,
    Clock,
    ItemAction,
    ItemOutcome,
    ItemResult,
    failure_context,
    utcnow,
)
from .summary import summarize

if TYPE_CHECKING:
    from collections.abc import Mapping

    from entrysync.domain.model import Feed, FeedBatch
    from entrysync.domain.ports import (
        DuplicateCache,
        ErrorReporter,
        Metrics,
        ReceiverUnitOfWork,
        Sanitizer,
    )

    from .threads import ThreadResolver
    from .updates import UpdateMerger

log = logging.getLogger(__name__)


@dataclass(slots=True)
class EntryReconciler:
    cache: DuplicateCache
    threads: ThreadResolver
    updates: UpdateMerger
    sanitizer: Sanitizer
    metrics: Metrics
    errors: ErrorReporter
    summary_length: int = 256
    clock: Clock = utcnow

    def reconcile(self, uow: ReceiverUnitOfWork, batch: FeedBatch) -> BatchResult:
        """Apply ``batch`` and return what happened to each item."""

        repositories = uow.repositories
        feed = repositories.feeds.get(batch.feed_id)
        if feed is None:
            raise FeedNotFoundError(batch.feed_id)

        public_ids = batch.public_ids
        existing = repositories.entries.find_by_public_ids(public_ids) if public_ids else {}

        result = BatchResult(feed_id=batch.feed_id)
        for item in batch.entries:
            result.items.append(self._process(uow, feed, item, existing))

        self._report_failures(batch.feed_id, result)

        result.feed_fields = feed.apply_metadata(batch.feed_changes, now=self.clock())
        uow.commit()

        log.info(
            "Reconciled feed %s: %s item(s) %s, %s notification(s)",
            batch.feed_id,
            len(result.items),
            result.summary(),
            result.notified,
        )
        return result

    def _process(
        self,
        uow: ReceiverUnitOfWork,
        feed: Feed,
        item: IncomingEntry | RejectedEntry,
        existing: Mapping[str, Entry],
    ) -> ItemResult:
        if isinstance(item, RejectedEntry):
            log.debug("Skipping invalid item %s: %s", item.public_id, item.reason)
            return ItemResult(
                public_id=item.public_id,
                action=ItemAction.CREATE,
                outcome=ItemOutcome.SKIPPED,
                payload=item.raw,
            )

        entry = existing.get(item.public_id)
        if entry is not None and item.update:
            action = ItemAction.UPDATE
        elif entry is not None:
            action = ItemAction.REFRESH
        else:
            action = ItemAction.CREATE

        def outcome_of(outcome: ItemOutcome, notified: int = 0) -> ItemResult:
            return ItemResult(
                public_id=item.public_id,
                action=action,
                outcome=outcome,
                notified=notified,
                payload=item.raw,
            )

        try:
            if action is ItemAction.UPDATE and entry is not None:
                outcome, notified = self.updates.apply(uow, entry, item)
            elif action is ItemAction.REFRESH:
                outcome, notified = ItemOutcome.DUPLICATE, 0
            else:
                outcome, notified = self._create(uow, feed, item), 0
            result = outcome_of(outcome, notified)
        except RecordNotUniqueError:
            # another worker inserted the same public_id first
            uow.rollback()
            log.debug("Entry %s already exists", item.public_id)
            result = outcome_of(ItemOutcome.DUPLICATE)
        except RecordValidationError as exc:
            uow.rollback()
            log.debug("Entry %s rejected: %s", item.public_id, exc)
            result = outcome_of(ItemOutcome.SKIPPED)
        except Exception as exc:  # noqa: BLE001
            uow.rollback()
            log.debug("Entry %s %s failed: %r", item.public_id, action, exc)
            result = outcome_of(ItemOutcome.FAILED)
            result.error = exc

        # registered whatever the outcome, so the next batch sees the item
        self._register(feed.id, item)
        return result

    def _create(self, uow: ReceiverUnitOfWork, feed: Feed, item: IncomingEntry) -> ItemOutcome:
        if self._alternate_exists(item):
            self.metrics.increment("entry.alternate_exists")
            return ItemOutcome.ALTERNATE_EXISTS

        threaded = self.threads.thread(uow, item, feed)
        if threaded is ItemOutcome.THREADED:
            self.metrics.increment("entry.thread")
        elif threaded is ItemOutcome.UPDATED:
            self.metrics.increment("entry.update")
        if threaded is not None:
            return threaded

        if feed.id is None:
            raise ValueError("Feed must be persisted before entries can be created")
        entry = Entry.from_incoming(
            item,
            feed_id=feed.id,
            summary=summarize(self.sanitizer, item.content, self.summary_length),
            now=self.clock(),
        )
        uow.repositories.entries.add(entry)
        uow.commit()
        self.metrics.increment("entry.create")
        return ItemOutcome.CREATED

    def _alternate_exists(self, item: IncomingEntry) -> bool:
        alternate = item.public_id_alt
        return alternate is not None and self.cache.exists(alternate)

    def _register(self, feed_id: int | None, item: IncomingEntry) -> None:
        try:
            self.cache.register(item.public_id, item.content, item.public_id_alt)
        except Exception as exc:  # noqa: BLE001
            log.warning("Could not register %s in the duplicate cache: %r", item.public_id, exc)
            self.errors.report(
                "reconcile.cache",
                "Duplicate cache registration failed",
                {"feed_id": feed_id, "public_id": item.public_id, **failure_context(exc)},
            )

    def _report_failures(self, feed_id: int, result: BatchResult) -> None:
        for failure in result.failures:
            context: dict[str, object] = {"feed_id": feed_id, "item": dict(failure.payload)}
            if failure.error is not None:
                context.update(failure_context(failure.error))
            self.errors.report(
                f"reconcile.{failure.action}",
                f"Entry {failure.action} failed",
                context,
            )
