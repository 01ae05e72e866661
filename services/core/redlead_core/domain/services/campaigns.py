"""Campaign service.

Validates and normalizes campaign input and enforces ownership on top of
the store.

Usage:
    service = CampaignService(store=get_store())

    campaign = service.create_campaign(
        owner_id="user-1",
        name="Launch",
        keywords=["crm", " CRM "],
        target_subreddits=["r/smallbusiness"],
    )
    # keywords == ["crm"], target_subreddits == ["smallbusiness"]
"""

from typing import Any, Optional

from redlead_core.domain.errors import CampaignNotFoundError, CampaignValidationError
from redlead_core.domain.services.discovery import normalize_subreddit
from redlead_core.domain.stores.base import CampaignRecord, Store

MAX_NAME_LENGTH = 255
MAX_LIST_ITEMS = 50


def _dedupe(values: list[str]) -> list[str]:
    """Drop blanks and case-insensitive duplicates, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for value in values:
        if not value:
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def normalize_keywords(values: Optional[list[str]], field_name: str = "keywords") -> list[str]:
    """Strip and dedupe keyword phrases."""
    if values is None:
        return []
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise CampaignValidationError(f"{field_name} must be a list of strings")
    result = _dedupe([" ".join(v.split()) for v in values])
    if len(result) > MAX_LIST_ITEMS:
        raise CampaignValidationError(f"{field_name} accepts at most {MAX_LIST_ITEMS} entries")
    return result


def normalize_subreddits(values: Optional[list[str]], field_name: str = "target_subreddits") -> list[str]:
    """Strip ``r/`` prefixes and whitespace, then dedupe."""
    if values is None:
        return []
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise CampaignValidationError(f"{field_name} must be a list of strings")
    result = _dedupe([normalize_subreddit(v) for v in values])
    for name in result:
        if any(c.isspace() for c in name):
            raise CampaignValidationError(f"Invalid subreddit name: {name!r}")
    if len(result) > MAX_LIST_ITEMS:
        raise CampaignValidationError(f"{field_name} accepts at most {MAX_LIST_ITEMS} entries")
    return result


def _normalize_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise CampaignValidationError("Campaign name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise CampaignValidationError(f"Campaign name exceeds {MAX_NAME_LENGTH} characters")
    return name


class CampaignService:
    """Campaign CRUD scoped to an owner."""

    def __init__(self, store: Store):
        self.store = store

    def create_campaign(
        self,
        owner_id: str,
        name: str,
        keywords: Optional[list[str]] = None,
        target_subreddits: Optional[list[str]] = None,
        website_url: Optional[str] = None,
        description: Optional[str] = None,
        negative_keywords: Optional[list[str]] = None,
        subreddit_blacklist: Optional[list[str]] = None,
        is_active: bool = True,
    ) -> CampaignRecord:
        """Create a campaign.

        Empty keyword or subreddit lists are allowed here; discovery
        refuses to run until both are set.

        Raises:
            CampaignValidationError: If the input is invalid
        """
        return self.store.create_campaign(
            owner_id=owner_id,
            name=_normalize_name(name),
            keywords=normalize_keywords(keywords),
            target_subreddits=normalize_subreddits(target_subreddits),
            website_url=(website_url or "").strip() or None,
            description=description,
            negative_keywords=normalize_keywords(negative_keywords, "negative_keywords"),
            subreddit_blacklist=normalize_subreddits(subreddit_blacklist, "subreddit_blacklist"),
            is_active=is_active,
        )

    def get_campaign(self, campaign_id: str, owner_id: str) -> CampaignRecord:
        """Get a campaign owned by ``owner_id``.

        Raises:
            CampaignNotFoundError: If missing or owned by someone else
        """
        campaign = self.store.get_campaign(campaign_id)
        if campaign is None or campaign.owner_id != owner_id:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        return campaign

    def list_campaigns(self, owner_id: str, is_active: Optional[bool] = None) -> list[CampaignRecord]:
        return self.store.list_campaigns(owner_id=owner_id, is_active=is_active)

    def update_campaign(self, campaign_id: str, owner_id: str, **fields: Any) -> CampaignRecord:
        """Update a campaign's editable fields.

        Raises:
            CampaignNotFoundError: If missing or owned by someone else
            CampaignValidationError: If the input is invalid
        """
        self.get_campaign(campaign_id, owner_id)

        updates: dict[str, Any] = {}
        for key, value in fields.items():
            if key == "name":
                updates[key] = _normalize_name(value)
            elif key in ("keywords", "negative_keywords"):
                updates[key] = normalize_keywords(value, key)
            elif key in ("target_subreddits", "subreddit_blacklist"):
                updates[key] = normalize_subreddits(value, key)
            elif key == "website_url":
                updates[key] = (value or "").strip() or None
            elif key in ("description", "is_active"):
                updates[key] = value
            else:
                raise CampaignValidationError(f"Unknown campaign field: {key}")

        if not updates:
            return self.get_campaign(campaign_id, owner_id)

        campaign = self.store.update_campaign(campaign_id, **updates)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        return campaign

    def delete_campaign(self, campaign_id: str, owner_id: str) -> None:
        """Delete a campaign and its leads.

        Raises:
            CampaignNotFoundError: If missing or owned by someone else
        """
        self.get_campaign(campaign_id, owner_id)
        if not self.store.delete_campaign(campaign_id):
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")


__all__ = [
    "CampaignService",
    "normalize_keywords",
    "normalize_subreddits",
]
