"""Store selection from settings."""

import logging
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from redlead_core.config import Settings, get_settings
from redlead_core.domain.stores.base import Store
from redlead_core.domain.stores.failover import FailoverStore
from redlead_core.domain.stores.memory import MemoryStore
from redlead_core.domain.stores.sql import SqlStore

logger = logging.getLogger(__name__)


def build_store(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker[Session]] = None,
) -> Store:
    """Build the store named by ``STORE_BACKEND``.

    Args:
        settings: Settings to read; defaults to the cached application settings
        session_factory: Session factory for SQL backends; defaults to the
            application engine

    Returns:
        A memory, SQL or failover store
    """
    settings = settings or get_settings()
    backend = settings.store_backend

    if backend == "memory":
        logger.info("Using in-memory store")
        return MemoryStore()

    if session_factory is None:
        from redlead_core.infra.db import get_sync_session_factory

        session_factory = get_sync_session_factory()

    if backend == "database":
        return SqlStore(session_factory)

    logger.info("Using database store with in-memory failover")
    return FailoverStore(SqlStore(session_factory), MemoryStore())


_store: Optional[Store] = None


def get_store() -> Store:
    """Get the process-wide store (singleton)."""
    global _store
    if _store is None:
        _store = build_store()
    return _store


def reset_store() -> None:
    """Drop the process-wide store so the next call rebuilds it."""
    global _store
    _store = None


__all__ = ["build_store", "get_store", "reset_store"]
