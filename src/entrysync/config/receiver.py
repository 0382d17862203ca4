"""Tunables for entry reconciliation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from .env import env_int

DEFAULT_UPDATE_WINDOW_DAYS: Final[int] = 7
DEFAULT_SIGNIFICANT_CHANGE: Final[int] = 50
DEFAULT_SUMMARY_LENGTH: Final[int] = 256


@dataclass(frozen=True, slots=True)
class ReceiverConfig:
    update_window: timedelta = timedelta(days=DEFAULT_UPDATE_WINDOW_DAYS)
    # plain-text characters that must be added before an update notifies
    significant_change: int = DEFAULT_SIGNIFICANT_CHANGE
    summary_length: int = DEFAULT_SUMMARY_LENGTH


def get_receiver_config() -> ReceiverConfig:
    window_days = env_int("ENTRYSYNC_UPDATE_WINDOW_DAYS", DEFAULT_UPDATE_WINDOW_DAYS)
    return ReceiverConfig(
        update_window=timedelta(days=window_days),
        significant_change=env_int("ENTRYSYNC_SIGNIFICANT_CHANGE", DEFAULT_SIGNIFICANT_CHANGE),
        summary_length=env_int("ENTRYSYNC_SUMMARY_LENGTH", DEFAULT_SUMMARY_LENGTH, minimum=1),
    )
