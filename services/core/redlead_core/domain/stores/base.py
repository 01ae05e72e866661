"""Store contract and record DTOs.

The discovery pipeline talks to persistence only through ``Store``. The
SQL, in-memory and failover implementations are interchangeable; business
logic never checks whether the database is reachable.

Usage:
    store = MemoryStore()
    campaign = store.create_campaign(
        owner_id="user-1",
        name="Launch",
        keywords=["crm"],
        target_subreddits=["smallbusiness"],
    )
    lead, created = store.upsert_lead(
        campaign.id, "t3_abc", LeadFields(title="Need a CRM", opportunity_score=80)
    )
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


# =============================================================================
# RECORDS
# =============================================================================


@dataclass
class CampaignRecord:
    """Detached snapshot of a campaign row."""

    id: str
    owner_id: str
    name: str
    keywords: list[str] = field(default_factory=list)
    target_subreddits: list[str] = field(default_factory=list)
    negative_keywords: list[str] = field(default_factory=list)
    subreddit_blacklist: list[str] = field(default_factory=list)
    website_url: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    last_manual_discovery_at: Optional[datetime] = None
    last_targeted_discovery_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def primary_keyword(self) -> Optional[str]:
        """First configured keyword, used for the global pass."""
        return self.keywords[0] if self.keywords else None


@dataclass
class LeadRecord:
    """Detached snapshot of a lead row."""

    id: str
    campaign_id: str
    external_post_id: str
    title: str = ""
    author: str = ""
    subreddit_name: str = ""
    url: str = ""
    body_text: str = ""
    posted_at: Optional[datetime] = None
    opportunity_score: int = 50
    intent: str = "unclassified"
    status: str = "new"
    num_comments: int = 0
    upvote_ratio: float = 0.0
    discovered_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class LeadFields:
    """Values written by ``upsert_lead``.

    ``status`` is only applied when set; inserts default it to ``new``
    and updates leave the stored status alone so user triage survives
    re-discovery.
    """

    title: str = ""
    author: str = ""
    subreddit_name: str = ""
    url: str = ""
    body_text: str = ""
    posted_at: Optional[datetime] = None
    opportunity_score: int = 50
    intent: str = "unclassified"
    num_comments: int = 0
    upvote_ratio: float = 0.0
    status: Optional[str] = None


# Fields a campaign update may touch
UPDATABLE_CAMPAIGN_FIELDS = frozenset(
    {
        "name",
        "website_url",
        "description",
        "keywords",
        "target_subreddits",
        "negative_keywords",
        "subreddit_blacklist",
        "is_active",
    }
)


def check_campaign_fields(fields: dict[str, Any]) -> None:
    """Reject updates to fields that are not user-editable.

    Raises:
        ValueError: If an unknown or read-only field is given.
    """
    unknown = set(fields) - UPDATABLE_CAMPAIGN_FIELDS
    if unknown:
        raise ValueError(f"Cannot update campaign fields: {sorted(unknown)}")


# =============================================================================
# STORE CONTRACT
# =============================================================================


class Store(ABC):
    """Campaign and lead persistence.

    Implementations raise ``StoreUnavailableError`` when the backing
    store cannot be reached and return ``None`` for missing rows.
    """

    # -------------------------------------------------------------------------
    # Campaigns
    # -------------------------------------------------------------------------

    @abstractmethod
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
        """Create a campaign and return its record."""
        pass

    @abstractmethod
    def get_campaign(self, campaign_id: str) -> Optional[CampaignRecord]:
        """Get a campaign by id."""
        pass

    @abstractmethod
    def list_campaigns(
        self,
        owner_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[CampaignRecord]:
        """List campaigns, newest first."""
        pass

    @abstractmethod
    def update_campaign(self, campaign_id: str, **fields: Any) -> Optional[CampaignRecord]:
        """Update editable campaign fields."""
        pass

    @abstractmethod
    def delete_campaign(self, campaign_id: str) -> bool:
        """Delete a campaign and its leads. Returns False if it did not exist."""
        pass

    @abstractmethod
    def touch_discovery(self, campaign_id: str, mode: str, at: datetime) -> None:
        """Record the completion time of a discovery run of ``mode``."""
        pass

    # -------------------------------------------------------------------------
    # Leads
    # -------------------------------------------------------------------------

    @abstractmethod
    def upsert_lead(
        self,
        campaign_id: str,
        external_post_id: str,
        fields: LeadFields,
    ) -> tuple[LeadRecord, bool]:
        """Insert or update the lead keyed by (external_post_id, campaign_id).

        Updates touch only the score, the intent and (when given) the
        status; ``discovered_at`` is never changed.

        Returns:
            Tuple of (lead record, True if inserted)
        """
        pass

    @abstractmethod
    def list_leads(
        self,
        campaign_id: str,
        status: Optional[str] = None,
        min_score: Optional[int] = None,
    ) -> list[LeadRecord]:
        """List leads for a campaign, best score first, then newest post."""
        pass

    @abstractmethod
    def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        """Get a lead by id."""
        pass

    @abstractmethod
    def update_lead_status(self, lead_id: str, status: str) -> Optional[LeadRecord]:
        """Set a lead's status. Returns None if the lead does not exist."""
        pass


__all__ = [
    "CampaignRecord",
    "LeadRecord",
    "LeadFields",
    "Store",
    "UPDATABLE_CAMPAIGN_FIELDS",
    "check_campaign_fields",
]
