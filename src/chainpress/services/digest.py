"""Content digest computation and comparison."""

from __future__ import annotations

import hmac
from dataclasses import dataclass

from chainpress.core.errors import DigestComputeFailureError
from chainpress.utils.hash import keccak256_hexdigest, sha256_hexdigest


@dataclass(frozen=True)
class ContentDigest:
    sha256_hex: str
    derived_hex: str


class DigestEngine:
    """Computes SHA-256 fingerprints and their Keccak-256 derivation.

    ``derived_hex`` is Keccak-256 over the ASCII of the SHA-256 hex string, the
    value an on-chain registry is expected to store.
    """

    @staticmethod
    def sha256_hex(raw_content: str | bytes) -> str:
        try:
            return sha256_hexdigest(raw_content)
        except (TypeError, UnicodeEncodeError) as err:
            raise DigestComputeFailureError(f"Cannot hash content: {err}") from err

    @staticmethod
    def derive_hex(sha256_hex: str) -> str:
        try:
            return keccak256_hexdigest(sha256_hex.encode("ascii"))
        except (TypeError, UnicodeEncodeError, AttributeError) as err:
            raise DigestComputeFailureError(f"Cannot derive digest: {err}") from err

    def compute(self, raw_content: str | bytes) -> ContentDigest:
        sha = self.sha256_hex(raw_content)
        return ContentDigest(sha256_hex=sha, derived_hex=self.derive_hex(sha))

    @staticmethod
    def matches(stored_hex: str | None, current_hex: str) -> bool:
        """Constant-time, byte-exact comparison of two hex digests."""
        if not stored_hex:
            return False
        return hmac.compare_digest(stored_hex.encode("ascii", "replace"), current_hex.encode("ascii"))
