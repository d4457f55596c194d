"""System and transparency endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter

from chainpress.core.settings import settings
from chainpress.services.challenge import normalize_domain

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health")
def health() -> dict[str, object]:
    return {"ok": True, "time": int(time.time())}


@router.get("/config")
def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "auth": {
            "domain": normalize_domain(settings.service_domain),
            "nonce_ttl_seconds": settings.nonce_ttl_seconds,
            "nonce_rate_limit_seconds": settings.nonce_rate_limit_seconds,
            "session_ttl_seconds": settings.session_ttl_seconds,
            "nonce_backend": "redis" if settings.redis_url else "memory",
        },
        "ipfs": {
            "provider": settings.ipfs_provider,
            "enabled": bool(settings.ipfs_api_key),
        },
    }
