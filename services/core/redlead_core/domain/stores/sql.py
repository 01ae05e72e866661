"""SQLAlchemy-backed store.

One session per operation. Connection-level failures surface as
``StoreUnavailableError`` so the failover decorator and the API can
treat them uniformly.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from redlead_core.domain.errors import StoreError, StoreUnavailableError
from redlead_core.domain.models import Campaign, DiscoveryMode, Lead, LeadStatus
from redlead_core.domain.stores.base import (
    CampaignRecord,
    LeadFields,
    LeadRecord,
    Store,
    check_campaign_fields,
)
from redlead_core.infra.db import session_scope

logger = logging.getLogger(__name__)


# =============================================================================
# MAPPERS
# =============================================================================


def _campaign_record(campaign: Campaign) -> CampaignRecord:
    return CampaignRecord(
        id=campaign.id,
        owner_id=campaign.owner_id,
        name=campaign.name,
        keywords=list(campaign.keywords or []),
        target_subreddits=list(campaign.target_subreddits or []),
        negative_keywords=list(campaign.negative_keywords or []),
        subreddit_blacklist=list(campaign.subreddit_blacklist or []),
        website_url=campaign.website_url,
        description=campaign.description,
        is_active=campaign.is_active,
        last_manual_discovery_at=campaign.last_manual_discovery_at,
        last_targeted_discovery_at=campaign.last_targeted_discovery_at,
        created_at=campaign.created_at,
        updated_at=campaign.updated_at,
    )


def _lead_record(lead: Lead) -> LeadRecord:
    return LeadRecord(
        id=lead.id,
        campaign_id=lead.campaign_id,
        external_post_id=lead.external_post_id,
        title=lead.title,
        author=lead.author,
        subreddit_name=lead.subreddit_name,
        url=lead.url,
        body_text=lead.body_text,
        posted_at=lead.posted_at,
        opportunity_score=lead.opportunity_score,
        intent=lead.intent,
        status=lead.status,
        num_comments=lead.num_comments,
        upvote_ratio=lead.upvote_ratio,
        discovered_at=lead.discovered_at,
        updated_at=lead.updated_at,
    )


# =============================================================================
# STORE
# =============================================================================


class SqlStore(Store):
    """Store over a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session]):
        """Initialize the store.

        Args:
            session_factory: Factory producing sessions bound to the database
        """
        self.session_factory = session_factory

    @contextmanager
    def _scope(self) -> Iterator[Session]:
        try:
            with session_scope(self.session_factory) as session:
                yield session
        except IntegrityError:
            raise
        except DBAPIError as e:
            logger.warning(f"Database unavailable: {e}")
            raise StoreUnavailableError(f"Database unavailable: {e}") from e

    # -------------------------------------------------------------------------
    # Campaigns
    # -------------------------------------------------------------------------

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
        with self._scope() as session:
            campaign = Campaign(
                owner_id=owner_id,
                name=name,
                keywords=list(keywords),
                target_subreddits=list(target_subreddits),
                negative_keywords=list(negative_keywords or []),
                subreddit_blacklist=list(subreddit_blacklist or []),
                website_url=website_url,
                description=description,
                is_active=is_active,
            )
            session.add(campaign)
            session.flush()
            return _campaign_record(campaign)

    def get_campaign(self, campaign_id: str) -> Optional[CampaignRecord]:
        with self._scope() as session:
            campaign = session.get(Campaign, campaign_id)
            return _campaign_record(campaign) if campaign else None

    def list_campaigns(
        self,
        owner_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[CampaignRecord]:
        with self._scope() as session:
            query = session.query(Campaign)
            if owner_id is not None:
                query = query.filter(Campaign.owner_id == owner_id)
            if is_active is not None:
                query = query.filter(Campaign.is_active == is_active)
            query = query.order_by(Campaign.created_at.desc())
            return [_campaign_record(c) for c in query.all()]

    def update_campaign(self, campaign_id: str, **fields: Any) -> Optional[CampaignRecord]:
        check_campaign_fields(fields)
        with self._scope() as session:
            campaign = session.get(Campaign, campaign_id)
            if campaign is None:
                return None
            for key, value in fields.items():
                setattr(campaign, key, list(value) if isinstance(value, list) else value)
            session.flush()
            return _campaign_record(campaign)

    def delete_campaign(self, campaign_id: str) -> bool:
        with self._scope() as session:
            campaign = session.get(Campaign, campaign_id)
            if campaign is None:
                return False
            session.delete(campaign)
            return True

    def touch_discovery(self, campaign_id: str, mode: str, at: datetime) -> None:
        with self._scope() as session:
            campaign = session.get(Campaign, campaign_id)
            if campaign is None:
                logger.warning(f"touch_discovery: campaign {campaign_id} not found")
                return
            if mode == DiscoveryMode.TARGETED:
                campaign.last_targeted_discovery_at = at
            else:
                campaign.last_manual_discovery_at = at

    # -------------------------------------------------------------------------
    # Leads
    # -------------------------------------------------------------------------

    def upsert_lead(
        self,
        campaign_id: str,
        external_post_id: str,
        fields: LeadFields,
    ) -> tuple[LeadRecord, bool]:
        try:
            return self._upsert_once(campaign_id, external_post_id, fields)
        except IntegrityError:
            # A concurrent run inserted the same post; apply ours as an update
            logger.info(
                f"Lead {external_post_id} for campaign {campaign_id} "
                "inserted concurrently, retrying as update"
            )
        try:
            return self._upsert_once(campaign_id, external_post_id, fields)
        except IntegrityError as e:
            raise StoreError(f"Could not upsert lead {external_post_id}: {e}") from e

    def _upsert_once(
        self,
        campaign_id: str,
        external_post_id: str,
        fields: LeadFields,
    ) -> tuple[LeadRecord, bool]:
        with self._scope() as session:
            lead = (
                session.query(Lead)
                .filter(
                    Lead.campaign_id == campaign_id,
                    Lead.external_post_id == external_post_id,
                )
                .first()
            )

            if lead is not None:
                lead.opportunity_score = fields.opportunity_score
                lead.intent = fields.intent
                if fields.status is not None:
                    lead.status = fields.status
                lead.updated_at = datetime.now(timezone.utc)
                session.flush()
                return _lead_record(lead), False

            lead = Lead(
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
            )
            session.add(lead)
            session.flush()
            return _lead_record(lead), True

    def list_leads(
        self,
        campaign_id: str,
        status: Optional[str] = None,
        min_score: Optional[int] = None,
    ) -> list[LeadRecord]:
        with self._scope() as session:
            query = session.query(Lead).filter(Lead.campaign_id == campaign_id)
            if status is not None:
                query = query.filter(Lead.status == status)
            if min_score is not None:
                query = query.filter(Lead.opportunity_score >= min_score)
            query = query.order_by(
                Lead.opportunity_score.desc(),
                Lead.posted_at.desc(),
            )
            return [_lead_record(lead) for lead in query.all()]

    def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        with self._scope() as session:
            lead = session.get(Lead, lead_id)
            return _lead_record(lead) if lead else None

    def update_lead_status(self, lead_id: str, status: str) -> Optional[LeadRecord]:
        with self._scope() as session:
            lead = session.get(Lead, lead_id)
            if lead is None:
                return None
            lead.status = status
            lead.updated_at = datetime.now(timezone.utc)
            session.flush()
            return _lead_record(lead)


__all__ = ["SqlStore"]
