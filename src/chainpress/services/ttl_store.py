"""Key/value storage with per-key expiry for short-lived auth state."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from threading import Lock
from typing import Protocol

import redis

from chainpress.core.settings import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

# Delete KEYS[1] only while it still holds ARGV[1]; returns 1 on delete.
_COMPARE_AND_DELETE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


class TTLStore(Protocol):
    """Minimal storage contract required by the nonce store."""

    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def add(self, key: str, value: str, ttl_seconds: int) -> bool: ...

    def get(self, key: str) -> str | None: ...

    def compare_and_delete(self, key: str, expected: str) -> bool: ...

    def delete(self, key: str) -> None: ...


class MemoryTTLStore:
    """In-process store with lazy expiry, guarded by a single lock."""

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._lock = Lock()
        self._entries: dict[str, tuple[str, float]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expiry = entry
        if expiry <= self._clock():
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def add(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store ``value`` only if ``key`` is absent; return whether it was stored."""
        with self._lock:
            if self._live(key) is not None:
                return False
            self._entries[key] = (value, self._clock() + ttl_seconds)
            return True

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._live(key)

    def compare_and_delete(self, key: str, expected: str) -> bool:
        with self._lock:
            if self._live(key) != expected:
                return False
            del self._entries[key]
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisTTLStore:
    """Redis-backed store relying on native key expiry."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client
        self._compare_and_delete = client.register_script(_COMPARE_AND_DELETE_LUA)

    @classmethod
    def from_url(cls, url: str) -> RedisTTLStore:
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._redis.set(key, value, ex=max(1, int(ttl_seconds)))

    def add(self, key: str, value: str, ttl_seconds: int) -> bool:
        return bool(self._redis.set(key, value, ex=max(1, int(ttl_seconds)), nx=True))

    def get(self, key: str) -> str | None:
        value = self._redis.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def compare_and_delete(self, key: str, expected: str) -> bool:
        return bool(self._compare_and_delete(keys=[key], args=[expected]))

    def delete(self, key: str) -> None:
        self._redis.delete(key)


_MEMORY_STORE = MemoryTTLStore()
_REDIS_STORE: RedisTTLStore | None = None


def get_ttl_store() -> TTLStore:
    """Return the configured store: Redis when ``REDIS_URL`` is set, else in-process."""
    global _REDIS_STORE
    if not settings.redis_url:
        return _MEMORY_STORE
    if _REDIS_STORE is None:
        logger.info("Using Redis TTL store at %s", settings.redis_url)
        _REDIS_STORE = RedisTTLStore.from_url(settings.redis_url)
    return _REDIS_STORE
