"""
tests/conftest.py -- Shared test fixtures for research portal integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + content
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient (bearer mode) with an admin JWT
  - session_client: fresh TestClient in session mode, per test
  - make_user(): create a user in a store and mint a token for it

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

DEBUG and RATE_LIMIT_ENABLED must be set before any api/auth/core import:
DEBUG lets get_settings() fall back to the development SECRET_KEY instead of
raising, and the shared limiter reads RATE_LIMIT_ENABLED once at import.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set these before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import NewUser, Role, User
from auth.sessions import SessionRegistry
from auth.store import MemoryUserStore, SQLUserStore, UserStore
from auth.tokens import create_access_token
from content.store import ContentStore

ADMIN_USERNAME = "testadmin"
ADMIN_PASSWORD = "testpass123"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def make_user(
    store: UserStore,
    username: str,
    password: str = "password123",
    role: Role = Role.user,
) -> tuple[User, str]:
    """Create a user directly in the store and return (user, token)."""
    user = store.create_user(
        NewUser(username=username, email=f"{username}@uni.example", password=password),
        role=role,
    )
    return user, create_access_token(user, expire_seconds=3600)


def _make_test_stores(db_suffix: str) -> tuple[SQLUserStore, ContentStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    db_url = f"sqlite:///file:test_portal_{db_suffix}?mode=memory&cache=shared&uri=true"
    return SQLUserStore(db_url), ContentStore(db_url)


def _patch_lifespan(user_store: UserStore, content: ContentStore, auth_mode: str = "bearer"):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.auth_mode = auth_mode
        app.state.user_store = user_store
        app.state.content = content
        app.state.sessions = SessionRegistry(ttl_seconds=3600)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, admin_token, admin_id) for bearer-mode API tests.

    One client per test module for speed; each module gets its own database.
    The admin user is created before the client starts.
    """
    user_store, content = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])
    admin, token = make_user(user_store, ADMIN_USERNAME, ADMIN_PASSWORD, role=Role.admin)

    app.router.lifespan_context = _patch_lifespan(user_store, content)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, admin.id

    content.close()
    user_store.close()


@pytest.fixture
def session_client() -> Generator[TestClient, None, None]:
    """Yield a fresh session-mode TestClient with an empty cookie jar.

    Function-scoped: session tests depend on cookie state, so each test gets
    its own client, user store, and session registry. Users live in a
    MemoryUserStore; an admin (testadmin / testpass123) exists up front.
    """
    user_store = MemoryUserStore()
    make_user(user_store, ADMIN_USERNAME, ADMIN_PASSWORD, role=Role.admin)
    content = ContentStore(f"sqlite:///file:test_session_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")

    app.router.lifespan_context = _patch_lifespan(user_store, content, auth_mode="session")

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    content.close()
