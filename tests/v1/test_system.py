"""Tests for system endpoints."""

from fastapi import status
from fastapi.testclient import TestClient


def test_system_health(client: TestClient) -> None:
    r = client.get("/api/v1/system/health")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["ok"] is True
    assert isinstance(data["time"], int)


def test_system_config(client: TestClient) -> None:
    """Config exposes sign-in parameters without secrets."""
    r = client.get("/api/v1/system/config")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["auth"]["domain"] == "example.com"
    assert data["auth"]["nonce_ttl_seconds"] == 300
    assert data["auth"]["session_ttl_seconds"] == 7200
    assert "database_url" not in str(data)
    assert "ipfs" in data and "enabled" in data["ipfs"]
