"""
Shared fixtures for the catalog test suite.

The store and cache fakes stand in for MySQL and Redis and are injected
through :class:`AppContext`, the same seam the server uses for the real
clients. The cache fake honours expiries against a controllable clock.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from bookcatalog.config import Settings
from bookcatalog.context import AppContext
from bookcatalog.errors import CacheError, StoreError
from bookcatalog.lifecycle import Lifecycle
from bookcatalog.main import create_app

TEST_SECRET = "test-secret-with-at-least-32-bytes!!"

BOOK_ROWS = [
    {"id": 1, "title": "Dune", "author": "Frank Herbert", "description": "Spice.", "status": "active"},
    {"id": 2, "title": "Emma", "author": "Jane Austen", "description": "Matchmaking.", "status": "active"},
    {"id": 3, "title": "Ulysses", "author": "James Joyce", "description": None, "status": "archived"},
]


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStore:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self.rows = list(rows if rows is not None else BOOK_ROWS)
        self.queries: List[tuple] = []
        self.pings = 0
        self.fail = False
        self.closed = False
        self.close_error: Optional[Exception] = None

    async def execute(self, sql: str, params=None):
        self.queries.append((sql, dict(params or {})))
        if self.fail:
            raise StoreError()
        status = (params or {}).get("status")
        return [
            {k: row[k] for k in ("id", "title", "author", "description")}
            for row in self.rows
            if status is None or row["status"] == status
        ]

    async def ping(self) -> None:
        if self.fail:
            raise StoreError()
        self.pings += 1

    async def close(self) -> None:
        if self.close_error is not None:
            raise self.close_error
        self.closed = True


class FakeCache:
    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.entries: Dict[str, tuple] = {}
        self.fail_get = False
        self.fail_set = False
        self.closed = False

    async def get(self, key: str) -> Optional[str]:
        if self.fail_get:
            raise CacheError()
        entry = self.entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self.entries[key]
            return None
        return value

    async def set(self, key: str, value: str, expiry: Optional[int] = None) -> bool:
        if self.fail_set:
            raise CacheError()
        expires_at = self.clock() + expiry if expiry else None
        self.entries[key] = (value, expires_at)
        return True

    async def delete(self, key: str) -> int:
        return 1 if self.entries.pop(key, None) is not None else 0

    async def close(self) -> None:
        self.closed = True


class ExitRecorder:
    """Replacement for ``os._exit`` that records codes instead of exiting."""

    def __init__(self):
        self.codes: List[int] = []
        self.called_at: Optional[float] = None

    def __call__(self, code: int) -> None:
        self.called_at = time.monotonic()
        self.codes.append(code)


def make_settings(**overrides: Any) -> Settings:
    values = {"environment": "development", "jwt_secret": TEST_SECRET}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def cache(clock) -> FakeCache:
    return FakeCache(clock)


@pytest.fixture
def context(settings, store, cache) -> AppContext:
    return AppContext(settings=settings, store=store, cache=cache)


@pytest.fixture
def exit_recorder() -> ExitRecorder:
    return ExitRecorder()


@pytest.fixture
def app(settings, context, exit_recorder):
    lifecycle = Lifecycle(timeout=settings.shutdown_timeout, force_exit=exit_recorder)
    return create_app(settings, context=context, lifecycle=lifecycle)


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
