"""Per-item and per-batch result types shared by the reconciliation stages."""

from __future__ import annotations

import traceback
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


class ItemAction(StrEnum):
    """Which path an item was routed to."""

    CREATE = "create"
    UPDATE = "update"
    REFRESH = "refresh"


class ItemOutcome(StrEnum):
    CREATED = "created"
    THREADED = "threaded"
    ALTERNATE_EXISTS = "alternate_exists"
    UPDATED = "updated"
    STALE = "stale"
    DUPLICATE = "duplicate"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True, kw_only=True)
class ItemResult:
    public_id: str | None
    action: ItemAction
    outcome: ItemOutcome
    notified: int = 0
    error: BaseException | None = None
    payload: Mapping[str, object] = field(default_factory=dict, repr=False)

    @property
    def failed(self) -> bool:
        return self.outcome is ItemOutcome.FAILED


@dataclass(slots=True, kw_only=True)
class BatchResult:
    feed_id: int
    items: list[ItemResult] = field(default_factory=list)
    feed_fields: set[str] = field(default_factory=set)

    @property
    def failures(self) -> list[ItemResult]:
        return [item for item in self.items if item.failed]

    @property
    def notified(self) -> int:
        return sum(item.notified for item in self.items)

    def count(self, outcome: ItemOutcome) -> int:
        return sum(1 for item in self.items if item.outcome is outcome)

    def summary(self) -> dict[str, int]:
        counts = Counter(item.outcome.value for item in self.items)
        return dict(sorted(counts.items()))


def failure_context(error: BaseException) -> dict[str, object]:
    """Exception details in the shape error reports carry."""

    return {
        "exception": repr(error),
        "exception_type": type(error).__name__,
        "backtrace": "".join(traceback.format_exception(error)),
    }
