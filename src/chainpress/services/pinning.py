"""IPFS pinning client for post payloads.

Supports Pinata (multipart ``pinFileToIPFS``) and web3.storage (raw upload).
The client is disabled when no API key is configured.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from chainpress.core.errors import PinningDisabledError, PinningError
from chainpress.core.settings import settings

logger = logging.getLogger(__name__)

PINATA_URL = "https://api.pinata.cloud/pinning/pinFileToIPFS"
WEB3_STORAGE_URL = "https://api.web3.storage/upload"
PROVIDERS = ("pinata", "web3storage")


@dataclass(frozen=True)
class PinningConfig:
    provider: str
    api_key: str | None
    secret: str | None
    timeout_seconds: float


def load_pinning_config() -> PinningConfig:
    """Build configuration object from global settings."""
    return PinningConfig(
        provider=settings.ipfs_provider.lower(),
        api_key=settings.ipfs_api_key,
        secret=settings.ipfs_secret,
        timeout_seconds=float(settings.ipfs_http_timeout_seconds),
    )


class PinningClient:
    """HTTP client wrapper for the configured IPFS pinning provider."""

    def __init__(
        self,
        config: PinningConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_pinning_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.config.api_key) and self.config.provider in PROVIDERS

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.enabled:
            raise PinningDisabledError("IPFS pinning is not configured")
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def pin(self, data: bytes, filename: str = "payload.txt") -> str:
        """Upload ``data`` and return the provider's CID."""
        client = await self._ensure_client()
        try:
            if self.config.provider == "pinata":
                response = await client.post(
                    PINATA_URL,
                    headers={
                        "pinata_api_key": self.config.api_key or "",
                        "pinata_secret_api_key": self.config.secret or "",
                    },
                    files={"file": (filename, data, "application/octet-stream")},
                )
            else:
                response = await client.post(
                    WEB3_STORAGE_URL,
                    headers={
                        "Authorization": f"Bearer {self.config.api_key}",
                        "Content-Type": "application/octet-stream",
                    },
                    content=data,
                )
        except httpx.HTTPError as exc:
            logger.warning("IPFS pin request failed: %s", exc)
            raise PinningError(f"Pinning request failed: {exc}") from exc

        if not response.is_success:
            logger.warning("IPFS provider responded with %s", response.status_code)
            raise PinningError(f"Pinning provider responded with {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise PinningError("Pinning provider returned invalid JSON") from exc
        cid = payload.get("IpfsHash") or payload.get("cid") or ""
        if not cid:
            raise PinningError("Pinning provider response did not include a CID")
        logger.info("Pinned %d bytes to IPFS as %s", len(data), cid)
        return str(cid)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


_PINNING_CLIENT: PinningClient | None = None


def get_pinning_client() -> PinningClient:
    """Return the process-wide pinning client."""
    global _PINNING_CLIENT
    if _PINNING_CLIENT is None:
        _PINNING_CLIENT = PinningClient()
    return _PINNING_CLIENT
