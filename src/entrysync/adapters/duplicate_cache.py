"""Duplicate-suppression caches keyed by entry public id.

Each registered id maps to the length of the content it arrived with and expires
after the configured TTL. Lookups only need existence.
"""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import redis

from entrysync.config.cache import DEFAULT_CACHE_TTL_DAYS, DEFAULT_KEY_PREFIX

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)


def _fingerprint(content: str | None) -> int:
    return len(content) if content else 1


def _keys(primary_key: str, alternate_key: str | None) -> list[str]:
    return [key for key in (primary_key, alternate_key) if key]


class RedisDuplicateCache:
    """Shared cache for all workers, stored as expiring redis string keys."""

    def __init__(
        self,
        client: redis.Redis,
        *,
        ttl: timedelta = timedelta(days=DEFAULT_CACHE_TTL_DAYS),
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self.client = client
        self.ttl = ttl
        self.key_prefix = key_prefix

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        ttl: timedelta = timedelta(days=DEFAULT_CACHE_TTL_DAYS),
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> RedisDuplicateCache:
        return cls(redis.Redis.from_url(url), ttl=ttl, key_prefix=key_prefix)

    def cache_key(self, public_id: str) -> str:
        return f"{self.key_prefix}:{public_id}"

    def exists(self, key: str) -> bool:
        return bool(self.client.exists(self.cache_key(key)))

    def register(
        self,
        primary_key: str,
        content: str | None,
        alternate_key: str | None = None,
    ) -> None:
        fingerprint = _fingerprint(content)
        pipe = self.client.pipeline()
        for key in _keys(primary_key, alternate_key):
            pipe.set(self.cache_key(key), fingerprint, ex=self.ttl)
        pipe.execute()


class InMemoryDuplicateCache:
    """Process-local cache for single-worker runs and tests."""

    def __init__(
        self,
        *,
        ttl: timedelta = timedelta(days=DEFAULT_CACHE_TTL_DAYS),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.ttl = ttl
        self._clock = clock or (lambda: datetime.now(UTC))
        self._records: dict[str, tuple[int, datetime]] = {}
        self._lock = threading.Lock()

    def exists(self, key: str) -> bool:
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return False
            if record[1] <= self._clock():
                del self._records[key]
                return False
            return True

    def register(
        self,
        primary_key: str,
        content: str | None,
        alternate_key: str | None = None,
    ) -> None:
        expires_at = self._clock() + self.ttl
        fingerprint = _fingerprint(content)
        with self._lock:
            for key in _keys(primary_key, alternate_key):
                self._records[key] = (fingerprint, expires_at)

    def __len__(self) -> int:
        return len(self._records)


if TYPE_CHECKING:
    from entrysync.domain.ports import DuplicateCache

    _redis_check: DuplicateCache = RedisDuplicateCache(redis.Redis())
    _memory_check: DuplicateCache = InMemoryDuplicateCache()
