"""Shared test fixtures."""

import fnmatch
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from contactqr.contacts.schemas import ContactRecord
from contactqr.contacts.store import FileContactStore, RedisContactStore, RestKvContactStore


class InMemoryRedis:
    """Dict-backed stand-in for the handful of redis client calls the store makes."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True

    def delete(self, *keys):
        return sum(1 for k in keys if self.data.pop(k, None) is not None)

    def scan_iter(self, match="*"):
        return iter([k for k in list(self.data) if fnmatch.fnmatchcase(k, match)])

    def ping(self):
        return True


class InMemoryRestKv(InMemoryRedis):
    """REST client double: cursor-based scan returning one key per page."""

    def scan(self, cursor, match=None, count=None):
        keys = [k for k in list(self.data) if match is None or fnmatch.fnmatchcase(k, match)]
        if cursor >= len(keys):
            return 0, []
        next_cursor = cursor + 1 if cursor + 1 < len(keys) else 0
        return next_cursor, [keys[cursor]]

    def ping(self):
        return "PONG"


@pytest.fixture
def file_store(tmp_path):
    """File-backed store writing under the test's temp dir."""
    return FileContactStore(tmp_path / "data" / "contacts.json")


@pytest.fixture
def kv_client():
    return InMemoryRedis()


@pytest.fixture
def kv_store(kv_client):
    """Key-value store backed by an in-memory redis double."""
    return RedisContactStore("redis://unused", prefix="contacts:", client=kv_client)


@pytest.fixture
def rest_client():
    return InMemoryRestKv()


@pytest.fixture
def rest_store(rest_client):
    """REST key-value store backed by an in-memory client double."""
    return RestKvContactStore("https://kv.example.io", "token", prefix="contacts:", client=rest_client)


@pytest.fixture
def hong():
    """The sample contact used throughout: Korean name, hyphenated phone."""
    return ContactRecord(last_name="홍", first_name="길동", phone="010-1234-5678")


@pytest.fixture
def app_client(file_store):
    """Create a TestClient with patched lifespan: file store under tmp_path, no log files."""
    from contactqr.main import create_app

    @asynccontextmanager
    async def _test_lifespan(app):
        app.state.store = file_store
        yield

    with patch("contactqr.main.lifespan", _test_lifespan):
        app = create_app()
        with TestClient(app, raise_server_exceptions=False) as client:
            yield client
