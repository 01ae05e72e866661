"""Leads service.

Read side of discovered leads: listing, status triage and per-campaign
metrics for the dashboard.

Usage:
    service = LeadsService(store=get_store())

    leads = service.list_leads(campaign_id, owner_id, status="new", min_score=70)
    service.update_status(lead_id, owner_id, "replied")
    metrics = service.campaign_metrics(campaign_id, owner_id)
"""

from dataclasses import dataclass, field
from typing import Optional

from redlead_core.domain.errors import (
    CampaignNotFoundError,
    LeadNotFoundError,
)
from redlead_core.domain.models import VALID_LEAD_STATUSES, LeadStatus
from redlead_core.domain.stores.base import LeadRecord, Store


# =============================================================================
# EXCEPTIONS
# =============================================================================


class InvalidStatusError(ValueError):
    """Status is not one of new, replied, saved, ignored."""

    pass


# =============================================================================
# ANALYTICS
# =============================================================================


# Inclusive score ranges for the distribution chart
SCORE_BUCKETS = (
    ("0-20", 0, 20),
    ("21-40", 21, 40),
    ("41-60", 41, 60),
    ("61-80", 61, 80),
    ("81-100", 81, 100),
)


@dataclass
class SubredditPerformance:
    """Lead volume and quality for one subreddit."""

    subreddit: str
    lead_count: int
    average_score: float


@dataclass
class CampaignMetrics:
    """Dashboard metrics for a campaign."""

    campaign_id: str
    total_leads: int = 0
    new_leads: int = 0
    replied_leads: int = 0
    conversion_rate: float = 0.0
    opportunity_score_distribution: dict[str, int] = field(default_factory=dict)
    subreddit_performance: list[SubredditPerformance] = field(default_factory=list)


def compute_metrics(campaign_id: str, leads: list[LeadRecord]) -> CampaignMetrics:
    """Aggregate metrics over a campaign's leads."""
    total = len(leads)
    new = sum(1 for lead in leads if lead.status == LeadStatus.NEW)
    replied = sum(1 for lead in leads if lead.status == LeadStatus.REPLIED)

    distribution = {label: 0 for label, _, _ in SCORE_BUCKETS}
    for lead in leads:
        for label, low, high in SCORE_BUCKETS:
            if low <= lead.opportunity_score <= high:
                distribution[label] += 1
                break

    by_subreddit: dict[str, list[int]] = {}
    for lead in leads:
        by_subreddit.setdefault(lead.subreddit_name, []).append(lead.opportunity_score)

    performance = [
        SubredditPerformance(
            subreddit=name,
            lead_count=len(scores),
            average_score=round(sum(scores) / len(scores), 1),
        )
        for name, scores in by_subreddit.items()
    ]
    performance.sort(key=lambda p: (-p.lead_count, -p.average_score, p.subreddit))

    return CampaignMetrics(
        campaign_id=campaign_id,
        total_leads=total,
        new_leads=new,
        replied_leads=replied,
        conversion_rate=round(replied / total, 4) if total else 0.0,
        opportunity_score_distribution=distribution,
        subreddit_performance=performance,
    )


# =============================================================================
# SERVICE
# =============================================================================


class LeadsService:
    """Lead listing, status updates and analytics, scoped to an owner."""

    def __init__(self, store: Store):
        self.store = store

    def _check_campaign(self, campaign_id: str, owner_id: str) -> None:
        campaign = self.store.get_campaign(campaign_id)
        if campaign is None or campaign.owner_id != owner_id:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")

    def list_leads(
        self,
        campaign_id: str,
        owner_id: str,
        status: Optional[str] = None,
        min_score: Optional[int] = None,
    ) -> list[LeadRecord]:
        """List a campaign's leads, best first.

        Raises:
            CampaignNotFoundError: If missing or owned by someone else
            InvalidStatusError: If status is not a valid lead status
        """
        if status is not None and status not in VALID_LEAD_STATUSES:
            raise InvalidStatusError(f"Invalid status: {status}")
        self._check_campaign(campaign_id, owner_id)
        return self.store.list_leads(campaign_id, status=status, min_score=min_score)

    def get_lead(self, lead_id: str, owner_id: str) -> LeadRecord:
        """Get a lead whose campaign belongs to ``owner_id``.

        Raises:
            LeadNotFoundError: If missing or not visible to the owner
        """
        lead = self.store.get_lead(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        campaign = self.store.get_campaign(lead.campaign_id)
        if campaign is None or campaign.owner_id != owner_id:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        return lead

    def update_status(self, lead_id: str, owner_id: str, status: str) -> LeadRecord:
        """Set a lead's status.

        Raises:
            InvalidStatusError: If status is not a valid lead status
            LeadNotFoundError: If missing or not visible to the owner
        """
        if status not in VALID_LEAD_STATUSES:
            raise InvalidStatusError(f"Invalid status: {status}")
        self.get_lead(lead_id, owner_id)
        lead = self.store.update_lead_status(lead_id, status)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        return lead

    def campaign_metrics(self, campaign_id: str, owner_id: str) -> CampaignMetrics:
        """Compute dashboard metrics for a campaign.

        Raises:
            CampaignNotFoundError: If missing or owned by someone else
        """
        self._check_campaign(campaign_id, owner_id)
        return compute_metrics(campaign_id, self.store.list_leads(campaign_id))


__all__ = [
    "LeadsService",
    "CampaignMetrics",
    "SubredditPerformance",
    "InvalidStatusError",
    "SCORE_BUCKETS",
    "compute_metrics",
]
