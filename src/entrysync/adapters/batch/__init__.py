"""Batch payload validation."""

from __future__ import annotations

from .schema import BatchPayload, EntryPayload, FeedPayload
from .translator import parse_batch, translate_entry

__all__ = ["BatchPayload", "EntryPayload", "FeedPayload", "parse_batch", "translate_entry"]
