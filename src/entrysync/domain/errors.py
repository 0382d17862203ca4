"""Errors raised across the domain/storage boundary.

Stores translate driver failures into these types so callers can branch on the
kind of failure instead of inspecting messages.
"""

from __future__ import annotations


class ReceiverError(RuntimeError):
    """Base class for entrysync failures."""


class FeedNotFoundError(ReceiverError):
    """Raised when a batch names a feed the store does not know."""

    def __init__(self, feed_id: int) -> None:
        super().__init__(f"Feed {feed_id} does not exist")
        self.feed_id = feed_id


class RecordNotUniqueError(ReceiverError):
    """Raised when an insert collides with a uniqueness constraint."""


class RecordValidationError(ReceiverError):
    """Raised when a record is rejected because of its field values."""
