"""Merge upstream edits into entries that already exist."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from entrysync.config.receiver import ReceiverConfig

from .contracts import Clock, ItemOutcome, utcnow
from .summary import summarize

if TYPE_CHECKING:
    from entrysync.domain.model import Entry, IncomingEntry
    from entrysync.domain.ports import Metrics, ReceiverUnitOfWork, Sanitizer

    from .fanout import NotificationFanout
    from .significance import SignificanceDetector

log = logging.getLogger(__name__)


@dataclass(slots=True)
class UpdateMerger:
    sanitizer: Sanitizer
    significance: SignificanceDetector
    fanout: NotificationFanout
    metrics: Metrics
    config: ReceiverConfig = field(default_factory=ReceiverConfig)
    clock: Clock = utcnow

    def apply(
        self,
        uow: ReceiverUnitOfWork,
        entry: Entry,
        item: IncomingEntry,
    ) -> tuple[ItemOutcome, int]:
        """Update ``entry`` from ``item`` and notify subscribers when warranted.

        Returns the outcome and the number of update markers written.
        """

        now = self.clock()
        if not entry.published_recently(now=now, window=self.config.update_window):
            log.debug("Ignoring update for stale entry %s", entry.public_id)
            return ItemOutcome.STALE, 0

        current_content = entry.content or ""
        new_content = item.content or ""
        summary = summarize(self.sanitizer, new_content, self.config.summary_length)

        entry.apply_update(item, summary=summary, now=now)
        uow.repositories.entries.save(entry)
        uow.commit()

        notified = 0
        if self.significance.is_significant(current_content, new_content):
            notified = self.fanout.notify(uow, entry)

        if len(new_content) == len(current_content):
            self.metrics.increment("entry.no_change")
        self.metrics.increment("entry.update")
        return ItemOutcome.UPDATED, notified
