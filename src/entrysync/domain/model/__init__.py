"""Domain model for feeds, entries and per-user markers."""

from __future__ import annotations

from .entry import (
    Entry,
    EntryState,
    OriginalSnapshot,
    Pristine,
    Revised,
    ThreadPost,
)
from .feed import Feed
from .incoming import FeedBatch, IncomingEntry, RejectedEntry
from .subscription import Subscription, UnreadEntry, UpdatedEntry

__all__ = [
    "Entry",
    "EntryState",
    "Feed",
    "FeedBatch",
    "IncomingEntry",
    "OriginalSnapshot",
    "Pristine",
    "RejectedEntry",
    "Revised",
    "Subscription",
    "ThreadPost",
    "UnreadEntry",
    "UpdatedEntry",
]
