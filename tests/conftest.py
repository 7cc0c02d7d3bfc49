"""
tests/conftest.py
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Generator

import pytest
import redis
import requests
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from webring import config, ownership
from webring.db import get_engine
from webring.main import create_app
from webring.models import Base
from webring.ring import RingStore

ADMIN_USERNAME = "ringmaster"
ADMIN_EMAIL = "ringmaster@ring.example"
ADMIN_PASSWORD = "Correct1Horse"


class FakeRedis:
    def __init__(self, up: bool = True):
        self.up = up

    def ping(self) -> bool:
        if not self.up:
            raise redis.ConnectionError("redis is down")
        return True


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400


@pytest.fixture(autouse=True)
def _fast_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    """Real PBKDF2 iteration counts make the suite crawl."""
    monkeypatch.setattr(config, "PBKDF2_ITERS", 1_000)


@pytest.fixture
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    eng = get_engine(f"sqlite:///{tmp_path / 'ring.sqlite3'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine: Engine) -> Generator[RingStore, None, None]:
    s = RingStore(engine, hash_workers=1)
    yield s
    s.close()


@pytest.fixture
def admin(store: RingStore):
    return store.add_admin(ADMIN_USERNAME, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def client(engine: Engine) -> Generator[TestClient, None, None]:
    """Test client whose startup hook builds its own store on ``engine``."""
    app = create_app(engine, redis_client=FakeRedis())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def app_store(client: TestClient) -> RingStore:
    return client.app.state.store


@pytest.fixture
def admin_client(client: TestClient, app_store: RingStore) -> TestClient:
    """``client`` with an admin account, logged in through the cookie session."""
    app_store.add_admin(ADMIN_USERNAME, ADMIN_EMAIL, ADMIN_PASSWORD)
    rv = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert rv.status_code == 200
    return client


@pytest.fixture
def owned_sites(monkeypatch: pytest.MonkeyPatch) -> Callable[[int, str], None]:
    """
    Make every site serve the correct ownership hash.

    The returned callable overrides the answer for everything fetched
    afterwards: ``serve(404)`` or ``serve(200, "wrong")``.
    """
    override: dict = {}

    def _fake_get(url: str, timeout: float | None = None) -> FakeResponse:
        if override:
            return FakeResponse(override["status"], override["text"])
        root = url[: -len(ownership.AUTH_PATH)]
        return FakeResponse(200, ownership.ownership_hash(root) + "\n")

    def serve(status: int, text: str = "") -> None:
        override.update(status=status, text=text)

    monkeypatch.setattr(requests, "get", _fake_get)
    return serve
