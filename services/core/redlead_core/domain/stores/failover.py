"""Failover store decorator.

Wraps a primary store and serves every operation from a secondary store
whenever the primary raises ``StoreUnavailableError``. The primary is
retried on every call, so service resumes on it as soon as it recovers.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from redlead_core.domain.errors import StoreUnavailableError
from redlead_core.domain.stores.base import (
    CampaignRecord,
    LeadFields,
    LeadRecord,
    Store,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FailoverStore(Store):
    """Store that falls back to a secondary when the primary is down."""

    def __init__(self, primary: Store, fallback: Store):
        """Initialize the decorator.

        Args:
            primary: Preferred store (normally SQL)
            fallback: Store used while the primary is unavailable
        """
        self.primary = primary
        self.fallback = fallback
        self.failover_count = 0

    def _call(self, operation: str, call: Callable[[Store], T]) -> T:
        try:
            return call(self.primary)
        except StoreUnavailableError as e:
            self.failover_count += 1
            logger.warning(f"Primary store unavailable during {operation}, using fallback: {e}")
            return call(self.fallback)

    def create_campaign(
        self,
        owner_id: str,
        name: str,
        keywords: list[str],
        target_subreddits: list[str],
        website_url: Optional[str] = None,
        description: Optional[str] = None,
        negative_keywords: Optional[list[str]] = None,
        subreddit_blacklist: Optional[list[str]] = None,
        is_active: bool = True,
    ) -> CampaignRecord:
        return self._call(
            "create_campaign",
            lambda s: s.create_campaign(
                owner_id=owner_id,
                name=name,
                keywords=keywords,
                target_subreddits=target_subreddits,
                website_url=website_url,
                description=description,
                negative_keywords=negative_keywords,
                subreddit_blacklist=subreddit_blacklist,
                is_active=is_active,
            ),
        )

    def get_campaign(self, campaign_id: str) -> Optional[CampaignRecord]:
        return self._call("get_campaign", lambda s: s.get_campaign(campaign_id))

    def list_campaigns(
        self,
        owner_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[CampaignRecord]:
        return self._call(
            "list_campaigns",
            lambda s: s.list_campaigns(owner_id=owner_id, is_active=is_active),
        )

    def update_campaign(self, campaign_id: str, **fields: Any) -> Optional[CampaignRecord]:
        return self._call("update_campaign", lambda s: s.update_campaign(campaign_id, **fields))

    def delete_campaign(self, campaign_id: str) -> bool:
        return self._call("delete_campaign", lambda s: s.delete_campaign(campaign_id))

    def touch_discovery(self, campaign_id: str, mode: str, at: datetime) -> None:
        return self._call("touch_discovery", lambda s: s.touch_discovery(campaign_id, mode, at))

    def upsert_lead(
        self,
        campaign_id: str,
        external_post_id: str,
        fields: LeadFields,
    ) -> tuple[LeadRecord, bool]:
        return self._call(
            "upsert_lead",
            lambda s: s.upsert_lead(campaign_id, external_post_id, fields),
        )

    def list_leads(
        self,
        campaign_id: str,
        status: Optional[str] = None,
        min_score: Optional[int] = None,
    ) -> list[LeadRecord]:
        return self._call(
            "list_leads",
            lambda s: s.list_leads(campaign_id, status=status, min_score=min_score),
        )

    def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        return self._call("get_lead", lambda s: s.get_lead(lead_id))

    def update_lead_status(self, lead_id: str, status: str) -> Optional[LeadRecord]:
        return self._call("update_lead_status", lambda s: s.update_lead_status(lead_id, status))


__all__ = ["FailoverStore"]
