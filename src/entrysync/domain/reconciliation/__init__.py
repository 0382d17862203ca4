"""Reconciliation of feed batches against stored entries.

Stages, in the order an item meets them:
1) alternate lookup in the duplicate cache (create path)
2) threading into an existing conversation (create path)
3) standalone creation
4) update merge, significance check and notification fanout (update path)
"""

from __future__ import annotations

from .contracts import BatchResult, ItemAction, ItemOutcome, ItemResult
from .engine import EntryReconciler
from .fanout import NotificationFanout
from .significance import SignificanceDetector
from .summary import summarize
from .threads import ThreadResolver
from .updates import UpdateMerger

__all__ = [
    "BatchResult",
    "EntryReconciler",
    "ItemAction",
    "ItemOutcome",
    "ItemResult",
    "NotificationFanout",
    "SignificanceDetector",
    "ThreadResolver",
    "UpdateMerger",
    "summarize",
]
