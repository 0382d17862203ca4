"""Record update notifications for the subscribers of an entry's feed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from entrysync.domain.model import UpdatedEntry

from .contracts import failure_context

if TYPE_CHECKING:
    from entrysync.domain.model import Entry
    from entrysync.domain.ports import ErrorReporter, Metrics, ReceiverUnitOfWork

log = logging.getLogger(__name__)


@dataclass(slots=True)
class NotificationFanout:
    metrics: Metrics
    errors: ErrorReporter

    def notify(self, uow: ReceiverUnitOfWork, entry: Entry) -> int:
        """Write one UpdatedEntry per eligible user and return how many were written.

        Users who still have the entry unread, or were already told about an update,
        are left out. Failures are rolled back and reported; the caller's entry
        update is already committed and stays.
        """

        try:
            written = self._fan_out(uow, entry)
        except Exception as exc:  # noqa: BLE001
            uow.rollback()
            log.warning("Update fanout failed for entry %s: %r", entry.public_id, exc)
            self.errors.report(
                "reconcile.fanout",
                "Update notification fanout failed",
                {"entry_id": entry.id, "public_id": entry.public_id, **failure_context(exc)},
            )
            return 0
        self.metrics.increment("entry.update_big")
        return written

    def _fan_out(self, uow: ReceiverUnitOfWork, entry: Entry) -> int:
        if entry.id is None:
            raise ValueError("Cannot notify about an unsaved entry")
        repositories = uow.repositories
        audience = list(dict.fromkeys(repositories.subscriptions.update_audience(entry.feed_id)))
        if not audience:
            return 0

        unread = repositories.unread_entries.user_ids(entry_id=entry.id, user_ids=audience)
        notified = repositories.updated_entries.user_ids(entry_id=entry.id, user_ids=audience)
        markers = [
            UpdatedEntry.new_from_owners(user_id, entry)
            for user_id in audience
            if user_id not in unread and user_id not in notified
        ]
        if not markers:
            return 0

        written = repositories.updated_entries.add_ignoring_duplicates(markers)
        uow.commit()
        log.debug("Notified %s users about entry %s", written, entry.public_id)
        return written
