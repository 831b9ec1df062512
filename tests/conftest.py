"""
tests/conftest.py -- Shared test fixtures for the marketplace auth tests.

This module provides:
  - store / service: function-scoped in-memory UserStore and AuthService
  - api_client: TestClient over the real FastAPI app with a patched lifespan

Design: the API fixture uses a named shared-memory SQLite URI because
TestClient runs sync route handlers in a thread pool. UserStore pins in-memory
URLs to a StaticPool, so every worker thread sees the same schema and rows.

The DEBUG env var must be set before any api/ import so get_settings()
auto-generates JWT_SECRET in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any api/core import.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import UserStore

TEST_SECRET = "test-signing-secret-0123456789abcdef"


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def secret() -> str:
    return TEST_SECRET


@pytest.fixture
def service(store: UserStore, secret: str) -> AuthService:
    return AuthService(store, secret=secret)


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, auth_service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store and a service with a known secret into app.state so
    tests can mint their own tokens with TEST_SECRET.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.auth_service = auth_service
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, AuthService], None, None]:
    """Yield (client, service) for API integration tests.

    The client targets http://localhost so TrustedHostMiddleware accepts it.
    State is shared across the tests of one module; tests use distinct emails.
    """
    user_store = UserStore(db_url="sqlite:///file:test_auth_api?mode=memory&cache=shared&uri=true")
    auth_service = AuthService(user_store, secret=TEST_SECRET)

    app.router.lifespan_context = _patch_lifespan(user_store, auth_service)

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        yield client, auth_service

    user_store.close()
