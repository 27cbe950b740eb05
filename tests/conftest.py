"""
tests/conftest.py -- Shared test fixtures for the food ordering integration tests.

This module provides:
  - make_test_stores(): isolated in-memory DBs for users, catalog, orders, payments
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_env: TestClient plus the seeded stores and a token for every demo user
  - _reset_rate_limits: clears slowapi counters before each test

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

The env vars below must be set before any auth/core import: get_settings()
is cached on first use.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

# CRITICAL: Set before any auth/core import. DEBUG lets get_settings()
# auto-generate SECRET_KEY; BCRYPT_ROUNDS=4 keeps hashing fast; TestClient
# sends Host: testserver, which TrustedHostMiddleware must accept.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.store import UserStore
from auth.tokens import create_access_token
from catalog.store import CatalogStore
from main import SEED_USERS, Stores, seed
from orders.store import OrderStore
from payments.store import PaymentStore

TEST_PASSWORD = "testpass123"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_test_stores(db_suffix: str) -> Stores:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB names so test modules
                   don't share state (e.g. 'api', 'orders').
    """

    def url(kind: str) -> str:
        return f"sqlite:///file:test_{kind}_{db_suffix}?mode=memory&cache=shared&uri=true"

    return Stores(
        users=UserStore(db_url=url("auth")),
        catalog=CatalogStore(db_url=url("catalog")),
        orders=OrderStore(db_url=url("orders")),
        payments=PaymentStore(db_url=url("payments")),
    )


def _patch_lifespan(stores: Stores):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the files next to each store module.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = stores.users
        app.state.catalog = stores.catalog
        app.state.order_store = stores.orders
        app.state.payment_store = stores.payments
        yield

    return test_lifespan


@dataclass
class ApiEnv:
    """Everything an API test needs: the client, the stores and demo identities."""

    client: TestClient
    stores: Stores
    tokens: dict[str, str] = field(default_factory=dict)  # email -> bearer token
    user_ids: dict[str, int] = field(default_factory=dict)  # email -> user id

    def headers(self, email: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens[email]}"}

    def restaurant_id(self, name: str) -> int:
        for country in ("india", "america"):
            for r in self.stores.catalog.list_restaurants({"country": country}):
                if r.name == name:
                    return r.id
        raise KeyError(name)

    def menu_item_id(self, restaurant_name: str, item_name: str) -> int:
        for item in self.stores.catalog.list_menu_items(self.restaurant_id(restaurant_name)):
            if item.name == item_name:
                return item.id
        raise KeyError(item_name)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    """Every test starts with fresh slowapi counters (the limiter is process-global)."""
    limiter.reset()


@pytest.fixture(scope="module")
def api_env(request) -> Generator[ApiEnv, None, None]:
    """Yield an ApiEnv backed by freshly seeded stores.

    The demo data (six users across every role and both countries, twelve
    restaurants, three payment methods) is loaded with the same seed()
    the CLI uses. Every demo user gets a one-hour bearer token.
    """
    stores = make_test_stores(request.module.__name__.rsplit(".", 1)[-1])
    seed(stores, password=TEST_PASSWORD, reset=True)

    env_tokens: dict[str, str] = {}
    env_ids: dict[str, int] = {}
    for email, _name, role, country in SEED_USERS:
        user = stores.users.get_by_email(email)
        env_ids[email] = user.id
        env_tokens[email] = create_access_token(user.id, email, role, country, expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(stores)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiEnv(client=client, stores=stores, tokens=env_tokens, user_ids=env_ids)

    stores.close()


@pytest.fixture
def client(api_env: ApiEnv) -> Generator[TestClient, None, None]:
    """The module's TestClient with its cookie jar emptied after each test.

    The auth cookie takes priority over a Bearer header, so a cookie left by
    a login test would otherwise leak into the next test.
    """
    yield api_env.client
    api_env.client.cookies.clear()
