"""
tests/conftest.py -- Shared test fixtures for the user service.

This module provides:
  - hasher / store / tokens / gateway: the auth core wired against
    MemoryStorage, with a low bcrypt cost so tests stay fast
  - _patch_lifespan(): wires a test gateway into app.state, bypassing real startup
  - api_client: TestClient backed by a users file in a temp directory,
    with one seeded user and a valid bearer token for that user

Environment variables must be set before any core/auth/api import so the
get_settings() singleton sees test values (a signing secret, and a login
rate limit high enough that the test suite never trips it).
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any core/auth import so get_settings() picks it up.
os.environ["JWT_SECRET"] = "test-secret-for-the-user-service-suite"
os.environ["LOGIN_RATE_LIMIT"] = "1000/minute"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.gateway import AuthGateway
from auth.passwords import PasswordHasher
from auth.storage import JsonFileStorage, MemoryStorage
from auth.store import UserStore
from auth.tokens import TokenService

TEST_SECRET = os.environ["JWT_SECRET"]
SEED_EMAIL = "testuser@example.com"
SEED_PASSWORD = "testpass123"  # nosec B105 -- test fixture credential


# ---------------------------------------------------------------------------
# Core fixtures -- function scoped, fresh state per test
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> PasswordHasher:
    # bcrypt's minimum cost; the default of 10 is covered in test_passwords.py
    return PasswordHasher(rounds=4)


@pytest.fixture
def store(hasher: PasswordHasher) -> UserStore:
    return UserStore(MemoryStorage(), hasher)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def gateway(store: UserStore, tokens: TokenService, hasher: PasswordHasher) -> AuthGateway:
    return AuthGateway(store, tokens, hasher)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(gateway: AuthGateway):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-built gateway into app.state so TestClient routes use an
    isolated users file rather than the configured one.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.gateway = gateway
        app.state.user_store = gateway.store
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(tmp_path_factory) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use a users file in a temp directory. One
    user (SEED_EMAIL / SEED_PASSWORD) is created before the client starts.
    """
    users_file = tmp_path_factory.mktemp("users") / "users.json"
    hasher = PasswordHasher(rounds=4)
    store = UserStore(JsonFileStorage(users_file), hasher)
    gateway = AuthGateway(store, TokenService(TEST_SECRET), hasher)

    seeded = store.create({"name": "Test User", "email": SEED_EMAIL, "password": SEED_PASSWORD})
    token = gateway.tokens.issue(seeded)

    app.router.lifespan_context = _patch_lifespan(gateway)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, seeded.id
