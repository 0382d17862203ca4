"""Ports for the record store.

Implementations raise :class:`~entrysync.domain.errors.RecordNotUniqueError` when an
insert hits a uniqueness constraint and
:class:`~entrysync.domain.errors.RecordValidationError` when field values are
rejected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping

    from entrysync.domain.model import Entry, Feed, UpdatedEntry


@runtime_checkable
class FeedRepository(Protocol):
    def get(self, feed_id: int) -> Feed | None: ...


@runtime_checkable
class EntryRepository(Protocol):
    def find_by_public_ids(self, public_ids: Collection[str]) -> Mapping[str, Entry]: ...

    def find_thread_parent(self, *, feed_id: int, reply_to: str) -> Entry | None: ...

    def add(self, entry: Entry) -> None:
        """Insert ``entry`` immediately so constraint violations surface here."""
        ...

    def save(self, entry: Entry) -> None: ...


@runtime_checkable
class SubscriptionRepository(Protocol):
    def update_audience(self, feed_id: int) -> list[int]:
        """User ids with an active, unmuted subscription that shows updates."""
        ...


@runtime_checkable
class UnreadEntryRepository(Protocol):
    def user_ids(self, *, entry_id: int, user_ids: Collection[int]) -> set[int]: ...


@runtime_checkable
class UpdatedEntryRepository(Protocol):
    def user_ids(self, *, entry_id: int, user_ids: Collection[int]) -> set[int]: ...

    def add_ignoring_duplicates(self, markers: Iterable[UpdatedEntry]) -> int:
        """Bulk insert, silently skipping rows that already exist. Returns rows written."""
        ...
