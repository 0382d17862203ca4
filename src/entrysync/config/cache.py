"""Duplicate cache and counter backend configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from .env import env_int, optional_env_var

DEFAULT_CACHE_TTL_DAYS: Final[int] = 30
DEFAULT_KEY_PREFIX: Final[str] = "entry:public_ids"
DEFAULT_METRICS_PREFIX: Final[str] = "entrysync:counters"


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Where duplicate-suppression hints and counters live.

    ``redis_url`` of ``None`` selects the in-process adapters, which only suppress
    duplicates within a single worker.
    """

    redis_url: str | None = None
    ttl: timedelta = timedelta(days=DEFAULT_CACHE_TTL_DAYS)
    key_prefix: str = DEFAULT_KEY_PREFIX
    metrics_prefix: str = DEFAULT_METRICS_PREFIX


def get_cache_config() -> CacheConfig:
    ttl_days = env_int("ENTRYSYNC_CACHE_TTL_DAYS", DEFAULT_CACHE_TTL_DAYS, minimum=1)
    return CacheConfig(
        redis_url=optional_env_var("REDIS_URL"),
        ttl=timedelta(days=ttl_days),
    )
