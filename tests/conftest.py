"""
tests/conftest.py -- Shared test fixtures for the NYS API tests.

This module provides:
  - FakeCache wiring (tests/fakes.py) so cache-aside behaviour is observable
    without Redis
  - records / cache / resolver / sessions: wired service objects over an
    in-memory SQLite RecordStore
  - api_client: TestClient over the real FastAPI app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API client because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

BCRYPT_ROUNDS is lowered before any iam import so hashing stays fast; the
production default (10) is covered in test_passwords.py.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# Must run before core.config.get_settings() is first called.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from core.config import get_settings
from iam.resolver import IdentityResolver
from iam.sessions import SessionManager
from iam.store import RecordStore
from tests.fakes import FakeCache

# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def records() -> Generator[RecordStore, None, None]:
    store = RecordStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def resolver(records: RecordStore, cache: FakeCache) -> IdentityResolver:
    return IdentityResolver(records, cache, universe="nys")


@pytest.fixture
def sessions(resolver: IdentityResolver, cache: FakeCache) -> SessionManager:
    return SessionManager(resolver, cache, cookie_name="nys-session", cookie_path="/v1")


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(records: RecordStore, cache: FakeCache):
    """Return a lifespan that wires test stores into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        settings = get_settings()
        app.state.records = records
        app.state.cache = cache
        app.state.resolver = IdentityResolver(records, cache, universe=settings.universe)
        app.state.sessions = SessionManager(
            app.state.resolver,
            cache,
            cookie_name=settings.session_cookie_name,
            cookie_path=settings.session_cookie_path,
        )
        yield

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, RecordStore, FakeCache], None, None]:
    """Yield (client, records, cache) over an isolated shared-memory database.

    base_url is https because the session cookie is Secure; an http base URL
    would make the client's cookie jar withhold it.
    """
    records = RecordStore(f"sqlite:///file:nys_test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    cache = FakeCache()
    app.router.lifespan_context = _patch_lifespan(records, cache)
    limiter.enabled = False

    with TestClient(app, base_url="https://testserver", raise_server_exceptions=False) as client:
        yield client, records, cache

    limiter.enabled = True
    records.close()
