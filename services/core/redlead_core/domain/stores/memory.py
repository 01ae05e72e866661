"""In-process store.

Used when ``STORE_BACKEND=memory`` and as the failover target when the
database is unavailable. Contents live for the lifetime of the process.
"""

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from redlead_core.domain.models import DiscoveryMode, LeadStatus
from redlead_core.domain.stores.base import (
    CampaignRecord,
    LeadFields,
    LeadRecord,
    Store,
    check_campaign_fields,
)

logger = logging.getLogger(__name__)


def _copy_campaign(record: CampaignRecord) -> CampaignRecord:
    return replace(
        record,
        keywords=list(record.keywords),
        target_subreddits=list(record.target_subreddits),
        negative_keywords=list(record.negative_keywords),
        subreddit_blacklist=list(record.subreddit_blacklist),
    )


def _lead_sort_key(lead: LeadRecord) -> tuple[int, float]:
    posted = lead.posted_at.timestamp() if lead.posted_at else float("-inf")
    return (lead.opportunity_score, posted)


class MemoryStore(Store):
    """Thread-safe dictionary-backed store."""

    def __init__(self):
        self._lock = threading.RLock()
        self._campaigns: dict[str, CampaignRecord] = {}
        self._leads: dict[str, LeadRecord] = {}
        # (campaign_id, external_post_id) -> lead id
        self._lead_keys: dict[tuple[str, str], str] = {}

    # =========================================================================
    # CAMPAIGNS
    # =========================================================================

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
        now = datetime.now(timezone.utc)
        record = CampaignRecord(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            name=name,
            keywords=list(keywords),
            target_subreddits=list(target_subreddits),
            negative_keywords=list(negative_keywords or []),
            subreddit_blacklist=list(subreddit_blacklist or []),
            website_url=website_url,
            description=description,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._campaigns[record.id] = record
        return _copy_campaign(record)

    def get_campaign(self, campaign_id: str) -> Optional[CampaignRecord]:
        with self._lock:
            record = self._campaigns.get(campaign_id)
            return _copy_campaign(record) if record else None

    def list_campaigns(
        self,
        owner_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[CampaignRecord]:
        with self._lock:
            records = [
                _copy_campaign(c)
                for c in self._campaigns.values()
                if (owner_id is None or c.owner_id == owner_id)
                and (is_active is None or c.is_active == is_active)
            ]
        records.sort(key=lambda c: c.created_at, reverse=True)
        return records

    def update_campaign(self, campaign_id: str, **fields: Any) -> Optional[CampaignRecord]:
        check_campaign_fields(fields)
        with self._lock:
            record = self._campaigns.get(campaign_id)
            if record is None:
                return None
            for key, value in fields.items():
                setattr(record, key, list(value) if isinstance(value, list) else value)
            record.updated_at = datetime.now(timezone.utc)
            return _copy_campaign(record)

    def delete_campaign(self, campaign_id: str) -> bool:
        with self._lock:
            if self._campaigns.pop(campaign_id, None) is None:
                return False
            for key in [k for k in self._lead_keys if k[0] == campaign_id]:
                lead_id = self._lead_keys.pop(key)
                self._leads.pop(lead_id, None)
            return True

    def touch_discovery(self, campaign_id: str, mode: str, at: datetime) -> None:
        with self._lock:
            record = self._campaigns.get(campaign_id)
            if record is None:
                logger.warning(f"touch_discovery: campaign {campaign_id} not found")
                return
            if mode == DiscoveryMode.TARGETED:
                record.last_targeted_discovery_at = at
            else:
                record.last_manual_discovery_at = at

    # =========================================================================
    # LEADS
    # =========================================================================

    def upsert_lead(
        self,
        campaign_id: str,
        external_post_id: str,
        fields: LeadFields,
    ) -> tuple[LeadRecord, bool]:
        now = datetime.now(timezone.utc)
        key = (campaign_id, external_post_id)

        with self._lock:
            lead_id = self._lead_keys.get(key)
            if lead_id is not None:
                lead = self._leads[lead_id]
                lead.opportunity_score = fields.opportunity_score
                lead.intent = fields.intent
                if fields.status is not None:
                    lead.status = fields.status
                lead.updated_at = now
                return replace(lead), False

            lead = LeadRecord(
                id=uuid.uuid4().hex,
                campaign_id=campaign_id,
                external_post_id=external_post_id,
                title=fields.title,
                author=fields.author,
                subreddit_name=fields.subreddit_name,
                url=fields.url,
                body_text=fields.body_text,
                posted_at=fields.posted_at,
                opportunity_score=fields.opportunity_score,
                intent=fields.intent,
                status=fields.status or LeadStatus.NEW,
                num_comments=fields.num_comments,
                upvote_ratio=fields.upvote_ratio,
                discovered_at=now,
                updated_at=now,
            )
            self._leads[lead.id] = lead
            self._lead_keys[key] = lead.id
            return replace(lead), True

    def list_leads(
        self,
        campaign_id: str,
        status: Optional[str] = None,
        min_score: Optional[int] = None,
    ) -> list[LeadRecord]:
        with self._lock:
            leads = [
                replace(lead)
                for lead in self._leads.values()
                if lead.campaign_id == campaign_id
                and (status is None or lead.status == status)
                and (min_score is None or lead.opportunity_score >= min_score)
            ]
        leads.sort(key=_lead_sort_key, reverse=True)
        return leads

    def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        with self._lock:
            lead = self._leads.get(lead_id)
            return replace(lead) if lead else None

    def update_lead_status(self, lead_id: str, status: str) -> Optional[LeadRecord]:
        with self._lock:
            lead = self._leads.get(lead_id)
            if lead is None:
                return None
            lead.status = status
            lead.updated_at = datetime.now(timezone.utc)
            return replace(lead)


__all__ = ["MemoryStore"]
