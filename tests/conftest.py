# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from nacl.signing import SigningKey
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPERATOR_API_KEY", "test-operator-key")
os.environ.setdefault("CLAIM_SIGNATURE_THRESHOLD", "2")

from phone_claim.api.dependencies import get_clock_dep, get_sms_channel_dep
from phone_claim.core.security import ClaimGrant, claim_message, create_claim_token, decode_claim_token
from phone_claim.db.session import Base, enable_sqlite_savepoints
from phone_claim.db.session import get_db as app_get_session
from phone_claim.db.time import utcnow
from phone_claim.main import app as fastapi_app

TEST_DB_URL = "sqlite://"

ADDRESS = "0x" + "ab" * 20


class FakeSmsChannel:
    """Records every delivery attempt; can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = False
        self.error: Exception | None = None

    async def send(self, code: str, phone_number: str) -> bool:
        self.sent.append((code, phone_number))
        if self.error is not None:
            raise self.error
        return not self.fail

    def codes_for(self, phone_number: str) -> list[str]:
        return [code for code, phone in self.sent if phone == phone_number]


class FakeClock:
    """Manually advanced clock starting at the real current time."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def sms_channel() -> FakeSmsChannel:
    return FakeSmsChannel()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    sms_channel: FakeSmsChannel,
    clock: FakeClock,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides: dict[Callable[..., Any], Callable[..., Any]] = {
        app_get_session: _get_session_override,
        get_sms_channel_dep: lambda: sms_channel,
        get_clock_dep: lambda: clock,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test", raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture()
def signers() -> list[SigningKey]:
    """Three independent Ed25519 signers."""
    return [SigningKey.generate() for _ in range(3)]


def sign_claim(key: SigningKey, address: str, nonce: int, amount: str) -> dict[str, str]:
    """Return the signer/signature fields for a claim submission."""
    signed = key.sign(claim_message(address, nonce, amount))
    return {
        "signer": key.verify_key.encode().hex(),
        "signature": signed.signature.hex(),
    }


def make_grant(phone_number: str) -> ClaimGrant:
    token, _ = create_claim_token(phone_number)
    return decode_claim_token(token)


def bearer(phone_number: str) -> dict[str, str]:
    token, _ = create_claim_token(phone_number)
    return {"Authorization": f"Bearer {token}"}
