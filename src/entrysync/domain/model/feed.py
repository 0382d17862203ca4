"""Feed aggregate (owned by the store; only descriptive fields change here)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class Feed:
    DESCRIPTIVE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"title", "feed_url", "site_url", "self_url", "options"}
    )

    id: int | None = None
    title: str | None = None
    feed_url: str | None = None
    site_url: str | None = None
    self_url: str | None = None
    options: dict[str, object] = field(default_factory=dict)
    updated_at: datetime | None = None

    def apply_metadata(self, changes: Mapping[str, object], *, now: datetime) -> set[str]:
        """Copy descriptive fields from ``changes`` and return the names that were set.

        Identity and unknown keys are ignored.
        """

        applied: set[str] = set()
        for name, value in changes.items():
            if name not in self.DESCRIPTIVE_FIELDS:
                continue
            if name == "options":
                value = dict(value) if isinstance(value, dict) else {}
            setattr(self, name, value)
            applied.add(name)
        self.updated_at = now
        return applied
