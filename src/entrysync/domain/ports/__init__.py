"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    EntryRepository,
    FeedRepository,
    SubscriptionRepository,
    UnreadEntryRepository,
    UpdatedEntryRepository,
)
from .services import DuplicateCache, ErrorReporter, Metrics, Sanitizer
from .unit_of_work import ReceiverRepositories, ReceiverUnitOfWork

__all__ = [
    "DuplicateCache",
    "EntryRepository",
    "ErrorReporter",
    "FeedRepository",
    "Metrics",
    "ReceiverRepositories",
    "ReceiverUnitOfWork",
    "Sanitizer",
    "SubscriptionRepository",
    "UnreadEntryRepository",
    "UpdatedEntryRepository",
]
