"""Per-user records: subscriptions and read-state markers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from entrysync.domain.model.entry import Entry


@dataclass(eq=False, kw_only=True)
class Subscription:
    user_id: int
    feed_id: int
    active: bool = True
    muted: bool = False
    show_updates: bool = True
    id: int | None = None

    @property
    def wants_updates(self) -> bool:
        return self.active and not self.muted and self.show_updates


@dataclass(eq=False, kw_only=True)
class UnreadEntry:
    """A user still has ``entry_id`` unread. Written by upstream delivery."""

    user_id: int
    entry_id: int
    feed_id: int
    published: datetime | None = None
    entry_created_at: datetime | None = None
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class UpdatedEntry:
    """A user has been told that ``entry_id`` changed. At most one per (user, entry)."""

    user_id: int
    entry_id: int
    feed_id: int
    published: datetime | None = None
    updated: datetime | None = None
    id: int | None = None

    @classmethod
    def new_from_owners(cls, user_id: int, entry: Entry) -> UpdatedEntry:
        if entry.id is None:
            raise ValueError("Entry must be persisted before recording update markers")
        return cls(
            user_id=user_id,
            entry_id=entry.id,
            feed_id=entry.feed_id,
            published=entry.published,
            updated=entry.updated_at,
        )
