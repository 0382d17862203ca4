"""Translate raw batch payloads into domain values."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import cast

from pydantic import ValidationError

from entrysync.domain.model import Feed, FeedBatch, IncomingEntry, RejectedEntry

from .schema import BatchPayload, EntryPayload

log = logging.getLogger(__name__)


def translate_entry(raw: object) -> IncomingEntry | RejectedEntry:
    if not isinstance(raw, Mapping):
        return RejectedEntry({"value": raw}, reason="entry is not an object")
    mapping = dict(cast("Mapping[str, object]", raw))
    try:
        payload = EntryPayload.model_validate(mapping)
    except ValidationError as exc:
        return RejectedEntry(mapping, reason=str(exc))
    return IncomingEntry(
        public_id=payload.public_id,
        update=payload.update is True,
        author=payload.author,
        content=payload.content,
        title=payload.title,
        url=payload.url,
        entry_id=payload.entry_id,
        published=payload.published,
        data=dict(payload.data),
        raw=mapping,
    )


def parse_batch(raw: Mapping[str, object]) -> FeedBatch:
    """Validate a batch record.

    A malformed ``feed`` section raises :class:`pydantic.ValidationError`; malformed
    entries become :class:`RejectedEntry` values.
    """

    payload = BatchPayload.model_validate(raw)
    changes = payload.feed.changes()
    unknown = set(changes) - Feed.DESCRIPTIVE_FIELDS
    if unknown:
        log.debug("Ignoring feed fields for %s: %s", payload.feed.id, sorted(unknown))
    entries = tuple(translate_entry(item) for item in payload.entries or ())
    return FeedBatch(feed_id=payload.feed.id, feed_changes=changes, entries=entries)
