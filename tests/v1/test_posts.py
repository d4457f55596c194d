"""Tests for post authoring, verified views and integrity metadata."""

from typing import Any

import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from chainpress.api.v1.dependencies import get_pinning_client_dep
from chainpress.models import Post
from chainpress.repositories.post_repo import PostRepository
from chainpress.services.pinning import PinningClient, PinningConfig
from tests.conftest import sign_in

HELLO_SHA256 = "185f8db32271fe25f561a6fc938b2e264306ec304eda518007d1764826381969"


def _create(client: TestClient, headers: dict[str, str], **overrides: Any) -> dict[str, Any]:
    payload = {"title": "Greeting", "content": "Hello", "category": "Notes"}
    payload.update(overrides)
    r = client.post("/api/v1/posts", json=payload, headers=headers)
    assert r.status_code == status.HTTP_200_OK, r.text
    return r.json()


@pytest.fixture()
def other_headers(client: TestClient, other_wallet) -> dict[str, str]:
    return {"Authorization": f"Bearer {sign_in(client, other_wallet)['token']}"}


def test_create_post_is_verified(client: TestClient, auth_headers, signed_in) -> None:
    post = _create(client, auth_headers)

    assert post["verified"] is True
    assert post["on_chain"] is False
    assert post["author_id"] == signed_in["user_id"]
    assert post["category"] == "Notes"


def test_create_requires_session(client: TestClient) -> None:
    r = client.post("/api/v1/posts", json={"title": "x", "content": "y"})
    assert r.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}

    r = client.post(
        "/api/v1/posts",
        json={"title": "x", "content": "y"},
        headers={"Authorization": "Bearer not-a-session"},
    )
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_view_post_reports_verification(client: TestClient, auth_headers) -> None:
    post = _create(client, auth_headers)

    r = client.get(f"/api/v1/posts/{post['id']}")

    assert r.status_code == status.HTTP_200_OK
    assert r.json()["verified"] is True
    assert r.json()["content"] == "Hello"


def test_verify_endpoint_returns_digests(client: TestClient, auth_headers) -> None:
    post = _create(client, auth_headers)

    r = client.get(f"/api/v1/verify/post/{post['id']}")

    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["verified"] is True
    assert data["sha256"] == HELLO_SHA256
    assert len(data["keccak256"]) == 64


def test_edit_through_api_rehashes(client: TestClient, auth_headers) -> None:
    post = _create(client, auth_headers)

    updated = _create(client, auth_headers, id=post["id"], content="Hello!")

    assert updated["id"] == post["id"]
    assert updated["content"] == "Hello!"
    assert updated["verified"] is True
    meta = client.get(f"/api/v1/posts/{post['id']}/meta").json()["data"]
    assert meta["sha256"] != HELLO_SHA256


def test_out_of_band_edit_breaks_verification_but_keeps_anchor(
    client: TestClient, auth_headers, db_session
) -> None:
    post = _create(client, auth_headers)
    r = client.post(
        f"/api/v1/posts/{post['id']}/meta",
        json={"verified": True, "contract_tx": "0x" + "ab" * 32},
        headers=auth_headers,
    )
    assert r.status_code == status.HTTP_200_OK, r.text
    view = client.get(f"/api/v1/posts/{post['id']}").json()
    assert view["verified"] is True
    assert view["on_chain"] is True

    stored = db_session.get(Post, post["id"])
    stored.content = "Hello!"
    db_session.commit()

    view = client.get(f"/api/v1/posts/{post['id']}").json()
    assert view["verified"] is False
    assert view["on_chain"] is True


def test_failed_digest_write_discards_the_edit(
    client: TestClient, auth_headers, db_session, mocker
) -> None:
    post = _create(client, auth_headers)
    mocker.patch.object(
        PostRepository,
        "set_meta",
        side_effect=OperationalError("UPDATE post_meta", {}, Exception("database is locked")),
    )

    r = client.post(
        "/api/v1/posts",
        json={"id": post["id"], "title": "Greeting", "content": "Tampered"},
        headers=auth_headers,
    )

    assert r.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert r.json()["detail"] == "Content digest could not be stored"
    assert db_session.get(Post, post["id"]).content == "Hello"
    view = client.get(f"/api/v1/posts/{post['id']}").json()
    assert view["content"] == "Hello"
    assert view["verified"] is True


def test_failed_digest_write_discards_a_new_post(
    client: TestClient, auth_headers, mocker
) -> None:
    mocker.patch.object(
        PostRepository,
        "set_meta",
        side_effect=OperationalError("INSERT post_meta", {}, Exception("database is locked")),
    )

    r = client.post(
        "/api/v1/posts", json={"title": "Orphan", "content": "No digest"}, headers=auth_headers
    )

    assert r.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert client.get("/api/v1/posts").json()["total"] == 0



def test_non_owner_cannot_edit(client: TestClient, auth_headers, other_headers) -> None:
    post = _create(client, auth_headers)

    r = client.post(
        "/api/v1/posts",
        json={"id": post["id"], "title": "Hijacked", "content": "pwned"},
        headers=other_headers,
    )

    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.json()["detail"] == "Insufficient rights"


def test_edit_unknown_post(client: TestClient, auth_headers) -> None:
    r = client.post(
        "/api/v1/posts", json={"id": 99999, "title": "x", "content": "y"}, headers=auth_headers
    )
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_drafts_visible_to_author_only(client: TestClient, auth_headers, other_headers) -> None:
    post = _create(client, auth_headers, status="draft")

    assert client.get(f"/api/v1/posts/{post['id']}").status_code == status.HTTP_404_NOT_FOUND
    r = client.get(f"/api/v1/posts/{post['id']}", headers=other_headers)
    assert r.status_code == status.HTTP_404_NOT_FOUND
    r = client.get(f"/api/v1/posts/{post['id']}", headers=auth_headers)
    assert r.status_code == status.HTTP_200_OK


def test_list_posts(client: TestClient, auth_headers, other_headers) -> None:
    _create(client, auth_headers, title="First")
    _create(client, auth_headers, title="Hidden", status="draft")
    _create(client, other_headers, title="Second", content="Greetings from elsewhere")

    r = client.get("/api/v1/posts")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["total"] == 2
    assert [row["title"] for row in data["rows"]] == ["Second", "First"]
    assert all(row["verified"] for row in data["rows"])

    mine = client.get("/api/v1/posts", params={"mine": True}, headers=auth_headers).json()
    assert sorted(row["title"] for row in mine["rows"]) == ["First", "Hidden"]

    found = client.get("/api/v1/posts", params={"search": "elsewhere"}).json()
    assert [row["title"] for row in found["rows"]] == ["Second"]


def test_list_mine_requires_session(client: TestClient) -> None:
    r = client.get("/api/v1/posts", params={"mine": True})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_list_pagination_bounds(client: TestClient) -> None:
    r = client.get("/api/v1/posts", params={"per_page": 51})
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_meta_accepts_legacy_keys(client: TestClient, auth_headers) -> None:
    post = _create(client, auth_headers)
    cid = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"

    r = client.post(
        f"/api/v1/posts/{post['id']}/meta",
        json={"bcpipfscid": cid, "bcp_verified": True},
        headers=auth_headers,
    )

    assert r.status_code == status.HTTP_200_OK, r.text
    data = r.json()["data"]
    assert data["ipfs_cid"] == cid
    assert data["verified"] is True
    assert data["sha256"] == HELLO_SHA256


def test_meta_rejects_bad_cid(client: TestClient, auth_headers) -> None:
    post = _create(client, auth_headers)
    r = client.post(
        f"/api/v1/posts/{post['id']}/meta", json={"ipfs_cid": "bad cid!"}, headers=auth_headers
    )
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_meta_contract_tx_requires_verified(client: TestClient, auth_headers) -> None:
    post = _create(client, auth_headers)
    r = client.post(
        f"/api/v1/posts/{post['id']}/meta", json={"contract_tx": "0xabc"}, headers=auth_headers
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST


def test_meta_update_owner_only(client: TestClient, auth_headers, other_headers) -> None:
    post = _create(client, auth_headers)
    r = client.post(
        f"/api/v1/posts/{post['id']}/meta", json={"verified": True}, headers=other_headers
    )
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_view_unknown_post(client: TestClient) -> None:
    assert client.get("/api/v1/posts/424242").status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/v1/verify/post/424242").status_code == status.HTTP_404_NOT_FOUND


def _pinning_override(app, handler=None, api_key: str | None = "key"):
    config = PinningConfig(provider="pinata", api_key=api_key, secret="s", timeout_seconds=5)
    transport = httpx.MockTransport(handler) if handler else None
    pinning = PinningClient(config, transport=transport)
    app.dependency_overrides[get_pinning_client_dep] = lambda: pinning
    return pinning


def test_pin_post_stores_cid(app, client: TestClient, auth_headers) -> None:
    post = _create(client, auth_headers)
    _pinning_override(app, lambda request: httpx.Response(200, json={"IpfsHash": "QmPinned123"}))
    try:
        r = client.post(f"/api/v1/posts/{post['id']}/pin", headers=auth_headers)
    finally:
        app.dependency_overrides.pop(get_pinning_client_dep, None)

    assert r.status_code == status.HTTP_200_OK, r.text
    assert r.json()["data"]["ipfs_cid"] == "QmPinned123"


def test_pin_post_disabled(app, client: TestClient, auth_headers) -> None:
    post = _create(client, auth_headers)
    _pinning_override(app, api_key=None)
    try:
        r = client.post(f"/api/v1/posts/{post['id']}/pin", headers=auth_headers)
    finally:
        app.dependency_overrides.pop(get_pinning_client_dep, None)

    assert r.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_pin_post_provider_error(app, client: TestClient, auth_headers) -> None:
    post = _create(client, auth_headers)
    _pinning_override(app, lambda request: httpx.Response(500, text="boom"))
    try:
        r = client.post(f"/api/v1/posts/{post['id']}/pin", headers=auth_headers)
    finally:
        app.dependency_overrides.pop(get_pinning_client_dep, None)

    assert r.status_code == status.HTTP_502_BAD_GATEWAY
