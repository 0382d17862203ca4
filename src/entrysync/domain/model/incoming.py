"""Values describing what a refresh batch delivers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class IncomingEntry:
    """One parsed entry from a batch.

    ``update`` is already resolved: only a literal ``true`` in the payload asks for
    an update, anything else is a re-delivery. ``raw`` keeps the payload as received
    for error reports.
    """

    public_id: str
    update: bool = False
    author: str | None = None
    content: str | None = None
    title: str | None = None
    url: str | None = None
    entry_id: str | None = None
    published: datetime | None = None
    data: dict[str, object] = field(default_factory=dict)
    raw: Mapping[str, object] = field(default_factory=dict, repr=False)

    @property
    def public_id_alt(self) -> str | None:
        value = self.data.get("public_id_alt")
        return value if isinstance(value, str) and value else None

    @property
    def in_reply_to(self) -> str | None:
        value = self.data.get("in_reply_to")
        if isinstance(value, int):
            return str(value)
        return value if isinstance(value, str) and value else None


@dataclass(frozen=True, slots=True)
class RejectedEntry:
    """A batch item that failed payload validation."""

    raw: Mapping[str, object]
    reason: str

    @property
    def public_id(self) -> str | None:
        value = self.raw.get("public_id")
        return value if isinstance(value, str) else None


@dataclass(frozen=True, slots=True, kw_only=True)
class FeedBatch:
    """A feed refresh: metadata changes plus entries in delivery order."""

    feed_id: int
    feed_changes: Mapping[str, object] = field(default_factory=dict)
    entries: tuple[IncomingEntry | RejectedEntry, ...] = ()

    @property
    def public_ids(self) -> list[str]:
        return [item.public_id for item in self.entries if isinstance(item, IncomingEntry)]
