"""Pytest configuration and fixtures for RedLead Core tests.

This module provides fixtures for:
- Database: SQLite in-memory engine and SQL store
- Stores: in-memory store for service and API tests
- HTTP client: AsyncClient for FastAPI testing
- Fakes: scripted scoring backend and Reddit fetcher
"""

from collections.abc import AsyncGenerator, Generator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from redlead_core.config import Settings
from redlead_core.domain.models import Base
from redlead_core.domain.services.discovery import DiscoveryService
from redlead_core.domain.services.opportunity_scoring import OpportunityScorer
from redlead_core.domain.stores import MemoryStore, SqlStore
from tests.factories import FakeFetcher, ScriptedBackend


# -----------------------------------------------------------------------------
# Test Settings
# -----------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with safe defaults."""
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        store_backend="memory",
        log_level="DEBUG",
        log_json=False,
        inference_url="http://inference.test",
        inference_model="test-model",
        inference_api_key="test-key",
        fallback_inference_api_key=None,
        proxy_enabled=False,
        discovery_subreddit_delay=0.0,
        discovery_rate_limit_cooldown=0.0,
    )


# -----------------------------------------------------------------------------
# Synchronous Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def sync_engine():
    """Create a synchronous SQLite in-memory engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def sync_session_factory(sync_engine) -> sessionmaker[Session]:
    """Create a synchronous session factory."""
    return sessionmaker(
        bind=sync_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


# -----------------------------------------------------------------------------
# Store Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def sql_store(sync_session_factory) -> SqlStore:
    """SQL store over the in-memory SQLite database."""
    return SqlStore(sync_session_factory)


@pytest.fixture
def memory_store() -> MemoryStore:
    """Empty in-memory store."""
    return MemoryStore()


# -----------------------------------------------------------------------------
# Discovery Fakes
# -----------------------------------------------------------------------------


@pytest.fixture
def scripted_backend() -> ScriptedBackend:
    """Scoring backend answering 70/Buying for every post."""
    return ScriptedBackend()


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    """Reddit fetcher whose subreddits all succeed with no posts."""
    return FakeFetcher()


@pytest.fixture
def sleeps() -> list[float]:
    """Records the delays a discovery service sleeps for."""
    return []


@pytest.fixture
def make_discovery_service(memory_store, sleeps):
    """Build a DiscoveryService over fakes with recorded sleeps."""

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    def _make(fetcher, backend, store=None, **kwargs) -> DiscoveryService:
        return DiscoveryService(
            store=store or memory_store,
            fetcher=fetcher,
            scorer=OpportunityScorer(backend=backend, concurrency=2),
            sleep=fake_sleep,
            **kwargs,
        )

    return _make


# -----------------------------------------------------------------------------
# FastAPI Test Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def test_app(memory_store) -> Generator[FastAPI, None, None]:
    """Create the FastAPI app with the store dependency pointed at memory."""
    from redlead_core.api.deps import get_store_dep
    from redlead_core.main import app

    app.dependency_overrides[get_store_dep] = lambda: memory_store

    yield app

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Identity header for the default test user."""
    return {"X-User-Id": "user-1"}
