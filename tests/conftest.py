"""Shared fixtures: isolated settings, fake clock, in-memory stores, API client."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

# Point settings at a throwaway directory before anything imports screenlink
_DATA_DIR = tempfile.mkdtemp()
os.environ["SCREENLINK_DATA_DIR"] = _DATA_DIR
os.environ["SCREENLINK_DB_PATH"] = os.path.join(_DATA_DIR, "test.db")
os.environ["SCREENLINK_JWT_SECRET"] = "test-secret-with-at-least-32-bytes!!"
os.environ["SCREENLINK_RECONCILE_ON_STARTUP"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from screenlink.stores.memory import MemoryDeviceStore, MemoryPairingStore


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def device_store() -> MemoryDeviceStore:
    return MemoryDeviceStore()


@pytest.fixture
def pairing_store(device_store) -> MemoryPairingStore:
    return MemoryPairingStore(device_store)


@pytest.fixture
def fixed_codes(monkeypatch):
    """Make the generator hand out the given codes in order."""
    def install(*codes):
        pending = list(codes)
        monkeypatch.setattr(
            "screenlink.services.code_generator.random_code",
            lambda length, alphabet: pending.pop(0),
        )
    return install


# --- API fixtures ---

@pytest.fixture
def db_engine():
    from screenlink.database import engine

    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield engine


@pytest.fixture
def client(db_engine, clock):
    from screenlink.api.deps import get_clock
    from screenlink.main import app

    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_account(engine, email: str) -> str:
    from screenlink.models.account import Account
    from screenlink.utils.security import hash_password

    with Session(engine) as session:
        account = Account(email=email, password_hash=hash_password("s3cret-pass"))
        session.add(account)
        session.commit()
        return account.id


def _login(client, email: str) -> dict:
    r = client.post("/api/v1/auth/login", json={"email": email, "password": "s3cret-pass"})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['accessToken']}"}


@pytest.fixture
def owner(client, db_engine):
    """(account_id, auth headers) for the primary test account."""
    account_id = _make_account(db_engine, "owner@example.com")
    return account_id, _login(client, "owner@example.com")


@pytest.fixture
def other(client, db_engine):
    account_id = _make_account(db_engine, "other@example.com")
    return account_id, _login(client, "other@example.com")


@pytest.fixture
def make_playlist(db_engine):
    from screenlink.models.account import Playlist

    def create(account_id: str, name: str = "Lobby loop") -> str:
        with Session(db_engine) as session:
            playlist = Playlist(owner_account_id=account_id, name=name)
            session.add(playlist)
            session.commit()
            return playlist.id
    return create
