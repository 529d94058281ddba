"""
tests/conftest.py -- Shared test fixtures for Account API tests.

This module provides:
  - _make_test_store(): creates an isolated in-memory DB for the user store
  - _patch_lifespan(): wires the test store into app.state, bypassing real startup
  - store: a fresh UserStore per test for unit tests
  - api_client: TestClient plus a seeded user and its bearer token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

SECRET_KEY and BCRYPT_ROUNDS must be set before any project import: Settings
refuses to start without a key, and auth modules read Settings at import.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any auth/core import.
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.passwords import hash_password
from auth.store import UserStore
from auth.tokens import create_access_token

_db_counter = itertools.count()

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_store(db_suffix: str) -> UserStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return UserStore(f"sqlite:///file:test_accounts_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    """Fresh, empty UserStore for one test."""
    s = _make_test_store(f"unit_{next(_db_counter)}")
    yield s
    s.close()


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    A user "testuser" / "testpass123" is created before the client starts and
    a token is issued for it for use in Authorization headers.
    """
    user_store = _make_test_store(f"api_{next(_db_counter)}")
    uid = user_store.create_user(
        User(
            username="testuser",
            full_name="Test User",
            hashed_password=hash_password("testpass123"),
        )
    )
    token = create_access_token(user_id=uid, username="testuser")

    app.router.lifespan_context = _patch_lifespan(user_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    user_store.close()
