"""Transaction boundary the reconciler works through."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from entrysync.domain.ports.persistence import (
        EntryRepository,
        FeedRepository,
        SubscriptionRepository,
        UnreadEntryRepository,
        UpdatedEntryRepository,
    )


@dataclass(slots=True)
class ReceiverRepositories:
    """Repositories needed to reconcile a feed batch, all bound to one session."""

    feeds: FeedRepository
    entries: EntryRepository
    subscriptions: SubscriptionRepository
    unread_entries: UnreadEntryRepository
    updated_entries: UpdatedEntryRepository


@runtime_checkable
class ReceiverUnitOfWork(Protocol):
    """Open for a whole batch; the reconciler commits or rolls back per item.

    ``rollback`` only discards the current item's changes. Work committed for
    earlier items stays committed.
    """

    @property
    def repositories(self) -> ReceiverRepositories: ...

    def __enter__(self) -> ReceiverUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
