"""Per-address challenge nonces with single-use consumption."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from chainpress.core.errors import RateLimitedError
from chainpress.core.security import generate_nonce
from chainpress.core.settings import settings
from chainpress.services.ttl_store import Clock, TTLStore, get_ttl_store

logger = logging.getLogger(__name__)

DEFAULT_NONCE_TTL_SECONDS = 300
DEFAULT_RATE_LIMIT_SECONDS = 10


@dataclass(frozen=True)
class NonceRecord:
    """The live challenge for one address."""

    address: str
    nonce: str
    issued_at: float

    def encode(self) -> str:
        return f"{self.issued_at!r}:{self.nonce}"

    @classmethod
    def decode(cls, address: str, raw: str) -> NonceRecord:
        issued_at, _, nonce = raw.partition(":")
        return cls(address=address, nonce=nonce, issued_at=float(issued_at))


class NonceStore:
    """Issues one live nonce per address and consumes it at most once.

    Records older than ``ttl_seconds`` are treated as absent at consume time
    even if the backing store has not evicted them yet.
    """

    def __init__(
        self,
        store: TTLStore,
        *,
        ttl_seconds: int = DEFAULT_NONCE_TTL_SECONDS,
        rate_limit_seconds: int = DEFAULT_RATE_LIMIT_SECONDS,
        clock: Clock = time.time,
        nonce_factory: Callable[[], str] = generate_nonce,
    ) -> None:
        self._store = store
        self.ttl_seconds = ttl_seconds
        self.rate_limit_seconds = rate_limit_seconds
        self._clock = clock
        self._nonce_factory = nonce_factory

    @staticmethod
    def _record_key(address: str) -> str:
        return f"nonce:{address}"

    @staticmethod
    def _rate_key(address: str) -> str:
        return f"nonce-rl:{address}"

    def issue(self, address: str) -> str:
        """Mint a nonce for an already-normalized ``address``.

        Raises:
            RateLimitedError: If a nonce was issued within the rate-limit window.
        """
        now = self._clock()
        if self.rate_limit_seconds > 0 and not self._store.add(
            self._rate_key(address), repr(now), self.rate_limit_seconds
        ):
            raise RateLimitedError(self._retry_after(address, now))

        record = NonceRecord(address=address, nonce=self._nonce_factory(), issued_at=now)
        # Overwrites any earlier live challenge for this address.
        self._store.set(self._record_key(address), record.encode(), self.ttl_seconds)
        logger.debug("Issued challenge nonce for %s", address)
        return record.nonce

    def _retry_after(self, address: str, now: float) -> int:
        marker = self._store.get(self._rate_key(address))
        try:
            elapsed = now - float(marker) if marker is not None else 0.0
        except ValueError:
            elapsed = 0.0
        return max(1, math.ceil(self.rate_limit_seconds - elapsed))

    def peek(self, address: str) -> NonceRecord | None:
        """Return the live record for ``address`` without consuming it."""
        raw = self._store.get(self._record_key(address))
        if raw is None:
            return None
        record = NonceRecord.decode(address, raw)
        if self._expired(record):
            return None
        return record

    def _expired(self, record: NonceRecord) -> bool:
        return self._clock() - record.issued_at > self.ttl_seconds

    def consume(self, address: str, nonce: str) -> bool:
        """Delete and accept the live nonce for ``address`` if it equals ``nonce``.

        The delete is a compare-and-delete on the exact stored record, so two
        concurrent callers presenting the same nonce cannot both succeed.
        """
        key = self._record_key(address)
        raw = self._store.get(key)
        if raw is None:
            logger.info("Nonce consume failed for %s: nonce_missing", address)
            return False

        record = NonceRecord.decode(address, raw)
        if record.nonce != nonce:
            logger.info("Nonce consume failed for %s: nonce_mismatch", address)
            return False
        if self._expired(record):
            self._store.compare_and_delete(key, raw)
            logger.info("Nonce consume failed for %s: nonce_expired", address)
            return False

        if not self._store.compare_and_delete(key, raw):
            logger.info("Nonce consume failed for %s: nonce_raced", address)
            return False
        return True


def get_nonce_store() -> NonceStore:
    """Return a nonce store bound to the configured TTL store and settings."""
    return NonceStore(
        get_ttl_store(),
        ttl_seconds=settings.nonce_ttl_seconds,
        rate_limit_seconds=settings.nonce_rate_limit_seconds,
    )
