"""
tests/conftest.py -- Shared test fixtures for socialgraph.

This module provides:
  - store / settings / codec / make_ctx: isolated building blocks for unit tests
  - execute: runs a GraphQL document synchronously against a context
  - make_user: inserts a user with a real bcrypt hash
  - api_client: TestClient wired to isolated stores via a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because resolvers run in worker threads (asyncio.to_thread) and TestClient
serves requests from a thread pool. Plain :memory: DBs are per-connection and
would present a blank schema to each thread. A uuid suffix keeps every
fixture instance on its own database.

DEBUG and BCRYPT_ROUNDS must be set before any app import so get_settings()
auto-generates SECRET_KEY and hashing stays fast.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from typing import Optional

# CRITICAL: set before any core/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from strawberry.types import ExecutionResult

from api.main import app
from auth.context import RequestContext
from auth.tokens import TokenCodec, hash_password
from core.config import Settings
from graph.schema import schema
from social.models import User
from social.store import SocialStore

TEST_SECRET = "test-secret-key-that-is-long-enough-0123456789"


def memory_url(name: str) -> str:
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(secret_key=TEST_SECRET, bcrypt_rounds=4, feed_includes_self=False)


@pytest.fixture
def store() -> Generator[SocialStore, None, None]:
    s = SocialStore(memory_url("unit"))
    yield s
    s.close()


@pytest.fixture
def codec(settings: Settings) -> TokenCodec:
    return TokenCodec(settings.secret_key, settings.token_expire_seconds)


@pytest.fixture
def make_ctx(store: SocialStore, codec: TokenCodec, settings: Settings) -> Callable[..., RequestContext]:
    def _make(caller_id: Optional[str] = None) -> RequestContext:
        return RequestContext(store=store, tokens=codec, settings=settings, caller_id=caller_id)

    return _make


@pytest.fixture
def execute() -> Callable[..., ExecutionResult]:
    """Run a GraphQL document synchronously: execute(ctx, query, variables)."""

    def _run(ctx: RequestContext, query: str, variables: Optional[dict] = None) -> ExecutionResult:
        return asyncio.run(schema.execute(query, variable_values=variables, context_value=ctx))

    return _run


@pytest.fixture
def make_user(store: SocialStore) -> Callable[..., User]:
    def _make(first: str, last: str, email: str, password: str = "password123") -> User:
        return store.users.create(
            first_name=first,
            last_name=last,
            email=email,
            password_hash=hash_password(password, rounds=4),
        )

    return _make


# ---------------------------------------------------------------------------
# HTTP integration fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(store: SocialStore, settings: Settings):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store and a codec on the test secret into app.state so
    routes never touch the default database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.store = store
        app.state.tokens = TokenCodec(settings.secret_key, settings.token_expire_seconds)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient running the real app against an isolated store.

    Module-scoped for speed: tests in one module share users and posts, so
    each test uses its own email addresses.
    """
    store = SocialStore(memory_url("api"))
    settings = Settings(secret_key=TEST_SECRET, bcrypt_rounds=4, feed_includes_self=False)
    app.router.lifespan_context = _patch_lifespan(store, settings)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    store.close()

