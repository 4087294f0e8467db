"""
tests/conftest.py -- Shared test fixtures for Digital Library tests.

This module provides:
  - make_token_service(): a TokenService with a fixed, known test config
  - _make_test_stores(): creates isolated in-memory DBs for accounts + books
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient for API integration tests
  - account_service / book_service: service-level fixtures on fresh stores

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

The DEBUG env var must be set before api.main is imported: the module reads
settings at import time for CORS, and without DEBUG=true the settings
validator refuses to run with no SECRET_KEY.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any api/core import so get_settings() falls back
# to development signing settings instead of raising.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_services
from auth.service import AccountService
from auth.store import AccountStore
from auth.tokens import TokenConfig, TokenService
from library.service import BookService
from library.store import BookStore

TEST_CONFIG = TokenConfig(
    secret_key="test-secret-key-that-is-at-least-32-characters",
    issuer="digital-library-test",
    audience="digital-library-test-clients",
    expire_minutes=60,
)


def make_token_service(**overrides) -> TokenService:
    """Return a TokenService on the shared test config, with optional field overrides."""
    fields = {
        "secret_key": TEST_CONFIG.secret_key,
        "issuer": TEST_CONFIG.issuer,
        "audience": TEST_CONFIG.audience,
        "expire_minutes": TEST_CONFIG.expire_minutes,
    }
    fields.update(overrides)
    return TokenService(TokenConfig(**fields))


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[AccountStore, BookStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules and
                   test functions don't share state.
    """
    url = f"sqlite:///file:test_library_{db_suffix}?mode=memory&cache=shared&uri=true"
    return AccountStore(url), BookStore(url)


def _patch_lifespan(account_store: AccountStore, book_store: BookStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores and a known TokenService into app.state so
    TestClient routes see isolated test DBs and tests can mint tokens that the
    app accepts.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_services(app, account_store, book_store, tokens, password_min_length=6)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app with a fresh, module-private database.

    Tests register their own accounts through the API; the module name keeps
    databases from leaking between test modules.
    """
    account_store, book_store = _make_test_stores(f"api_{request.module.__name__}")
    app.router.lifespan_context = _patch_lifespan(account_store, book_store, make_token_service())

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    account_store.close()
    book_store.close()


@pytest.fixture
def tokens() -> TokenService:
    return make_token_service()


@pytest.fixture
def stores() -> Generator[tuple[AccountStore, BookStore], None, None]:
    """Fresh account and book stores per test."""
    account_store, book_store = _make_test_stores(f"unit_{uuid.uuid4().hex}")
    yield account_store, book_store
    account_store.close()
    book_store.close()


@pytest.fixture
def account_service(stores, tokens) -> AccountService:
    account_store, book_store = stores
    return AccountService(account_store, tokens, password_min_length=6, purge_owned=book_store.delete_by_owner)


@pytest.fixture
def book_service(stores) -> BookService:
    _account_store, book_store = stores
    return BookService(book_store)


def register(
    client: TestClient,
    email: str,
    password: str = "secret1",
    first: str = "Test",
    last: str = "User",
) -> dict:
    """Register through the API and return the JSON body ({token, user, ...})."""
    resp = client.post(
        "/api/v1/auth/register",
        json={"first_name": first, "last_name": last, "email": email, "password": password},
    )
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
