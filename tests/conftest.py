from contextlib import asynccontextmanager

import pytest
from fastapi.testclient import TestClient

from core import db
from core.config import Settings
from main import app

CONFIG_VARS = (
    "SONGS_ENV_FILE",
    "POSTGRES_HOST",
    "POSTGRES_PORT",
    "POSTGRES_DB",
    "POSTGRES_USER",
    "POSTGRES_PASSWORD",
    "SONG_INFO_URL",
    "SONG_INFO_TIMEOUT_S",
    "DB_POOL_MIN_SIZE",
    "DB_POOL_MAX_SIZE",
    "DB_COMMAND_TIMEOUT_S",
    "LOG_LEVEL",
)


class FakeTransaction:
    """Stands in for db.transaction() and records how the block ended."""

    def __init__(self):
        self.conn = object()
        self.entered = False
        self.committed = False
        self.rolled_back = False

    @asynccontextmanager
    async def __call__(self):
        self.entered = True
        try:
            yield self.conn
        except BaseException:
            self.rolled_back = True
            raise
        self.committed = True


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so monkeypatch also removes values loaded from .env files.
    for name in CONFIG_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def settings() -> Settings:
    return Settings(
        postgres_host="db",
        postgres_port=5432,
        postgres_db="songs",
        postgres_user="songs",
        postgres_password="secret",
        song_info_url="http://provider.test",
        song_info_timeout_s=1.0,
    )


@pytest.fixture
def client(settings):
    # No context manager: the lifespan (real DB pool) is not started.
    app.state.settings = settings
    yield TestClient(app)
    del app.state.settings


@pytest.fixture
def fake_transaction(monkeypatch) -> FakeTransaction:
    fake = FakeTransaction()
    monkeypatch.setattr(db, "transaction", fake)
    return fake
