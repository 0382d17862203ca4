"""Decide whether an entry update is worth telling subscribers about."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from entrysync.config.receiver import DEFAULT_SIGNIFICANT_CHANGE

from .contracts import failure_context

if TYPE_CHECKING:
    from entrysync.domain.ports import ErrorReporter, Sanitizer

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SignificanceDetector:
    """Length-based check for substantial new material.

    An update is significant when its plain text grew by more than ``threshold``
    characters. An empty baseline never counts, so backfilled content does not
    notify anyone.
    """

    sanitizer: Sanitizer
    errors: ErrorReporter
    threshold: int = DEFAULT_SIGNIFICANT_CHANGE

    def is_significant(self, current_content: str | None, new_content: str | None) -> bool:
        if not current_content:
            return False
        try:
            original_length = len(self.sanitizer.strip(current_content))
            new_length = len(self.sanitizer.strip(new_content or ""))
        except Exception as exc:  # noqa: BLE001
            log.warning("Significance detection failed: %r", exc)
            self.errors.report(
                "reconcile.significance",
                "Significant change detection failed",
                failure_context(exc),
            )
            return False
        return new_length - original_length > self.threshold
