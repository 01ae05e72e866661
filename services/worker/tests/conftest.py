"""Pytest configuration and fixtures for worker tests.

These fixtures enable testing Celery tasks without requiring:
- Running Redis/Celery
- A database
- Reddit or an inference endpoint
"""

import os
from typing import Any

import pytest

# Set test environment variables before importing celery_app
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("STORE_BACKEND", "memory")


@pytest.fixture(scope="session")
def celery_config() -> dict[str, Any]:
    """Celery configuration for testing."""
    return {
        "broker_url": "memory://",
        "result_backend": "cache+memory://",
        "task_always_eager": True,
        "task_eager_propagates": True,
    }


@pytest.fixture
def mock_celery_app():
    """Celery app configured for eager (synchronous) execution."""
    from redlead_worker.celery_app import app

    app.conf.update(
        task_always_eager=True,
        task_eager_propagates=True,
    )
    return app


@pytest.fixture
def memory_store():
    """Empty in-memory store."""
    from redlead_core.domain.stores import MemoryStore

    return MemoryStore()


@pytest.fixture
def discovery_result():
    """Build a DiscoveryResult with the given created/updated counts."""
    from redlead_core.domain.services.discovery import DiscoveryDiagnostics, DiscoveryResult

    def _make(campaign_id: str, created: int = 2, updated: int = 1, mode: str = "manual"):
        diagnostics = DiscoveryDiagnostics(campaign_id=campaign_id, mode=mode)
        diagnostics.leads_created = created
        diagnostics.leads_updated = updated
        return DiscoveryResult(
            saved_count=created + updated,
            message=f"{created + updated} leads saved ({created} new, {updated} updated).",
            diagnostics=diagnostics,
        )

    return _make
