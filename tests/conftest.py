# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from dataclasses import dataclass
from typing import Any

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SERVICE_DOMAIN", "example.com")

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chainpress.api.v1.dependencies import get_nonce_store_dep
from chainpress.db.session import Base
from chainpress.db.session import get_db as app_get_session
from chainpress.main import app as fastapi_app
from chainpress.services.challenge import ChallengeMessage
from chainpress.services.nonce_store import NonceStore
from chainpress.services.ttl_store import MemoryTTLStore

TEST_DB_URL = "sqlite://"
TEST_DOMAIN = "example.com"
TEST_CHAIN_ID = 1


class ManualClock:
    """Deterministic time source shared by the TTL store and nonce store."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN on its own; emit it explicitly so SAVEPOINTs nest.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Session commits and rollbacks act on SAVEPOINTs inside one outer
    # transaction, so an app-level rollback only discards its own unit of work.
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def ttl_store(clock: ManualClock) -> MemoryTTLStore:
    return MemoryTTLStore(clock)


@pytest.fixture()
def nonce_store(ttl_store: MemoryTTLStore, clock: ManualClock) -> NonceStore:
    return NonceStore(ttl_store, ttl_seconds=300, rate_limit_seconds=10, clock=clock)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI, db_session: Session, nonce_store: NonceStore
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_nonce_store_dep] = lambda: nonce_store
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_nonce_store_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@dataclass
class Wallet:
    account: LocalAccount

    @property
    def address(self) -> str:
        return self.account.address.lower()

    @property
    def checksum_address(self) -> str:
        return self.account.address

    def sign(self, message: str) -> str:
        signed = Account.sign_message(encode_defunct(text=message), private_key=self.account.key)
        return "0x" + bytes(signed.signature).hex()


def make_wallet() -> Wallet:
    return Wallet(Account.create())


@pytest.fixture()
def wallet() -> Wallet:
    return make_wallet()


@pytest.fixture()
def other_wallet() -> Wallet:
    return make_wallet()


def build_message(
    wallet: Wallet,
    nonce: str,
    *,
    domain: str = TEST_DOMAIN,
    chain_id: int = TEST_CHAIN_ID,
) -> str:
    return ChallengeMessage().build(domain, wallet.address, chain_id, nonce)


def build_verify_payload(wallet: Wallet, nonce: str, **overrides: Any) -> dict[str, Any]:
    message = overrides.pop("message", None) or build_message(wallet, nonce)
    payload = {
        "address": wallet.address,
        "signature": wallet.sign(message),
        "nonce": nonce,
        "chain_id": TEST_CHAIN_ID,
        "message": message,
    }
    payload.update(overrides)
    return payload


def sign_in(client: TestClient, wallet: Wallet) -> dict[str, Any]:
    """Run the nonce -> sign -> verify flow and return the verify response body."""
    nonce = client.post("/api/v1/auth/nonce", json={"address": wallet.address}).json()["nonce"]
    response = client.post("/api/v1/auth/verify", json=build_verify_payload(wallet, nonce))
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture()
def signed_in(client: TestClient, wallet: Wallet) -> dict[str, Any]:
    return sign_in(client, wallet)


@pytest.fixture()
def auth_headers(signed_in: dict[str, Any]) -> dict[str, str]:
    return {"Authorization": f"Bearer {signed_in['token']}"}
