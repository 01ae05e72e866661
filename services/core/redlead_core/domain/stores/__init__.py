"""Campaign and lead stores."""

from redlead_core.domain.stores.base import (
    CampaignRecord,
    LeadFields,
    LeadRecord,
    Store,
)
from redlead_core.domain.stores.factory import build_store, get_store, reset_store
from redlead_core.domain.stores.failover import FailoverStore
from redlead_core.domain.stores.memory import MemoryStore
from redlead_core.domain.stores.sql import SqlStore

__all__ = [
    "CampaignRecord",
    "FailoverStore",
    "LeadFields",
    "LeadRecord",
    "MemoryStore",
    "SqlStore",
    "Store",
    "build_store",
    "get_store",
    "reset_store",
]
