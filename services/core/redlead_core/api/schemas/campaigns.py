"""Campaign API schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CampaignCreate(BaseModel):
    """Request schema for creating a campaign."""

    name: str = Field(..., min_length=1, max_length=255, description="Campaign name")
    website_url: Optional[str] = Field(default=None, description="Product website")
    description: Optional[str] = Field(default=None, description="Product description")
    keywords: list[str] = Field(default_factory=list, description="Keywords, primary first")
    target_subreddits: list[str] = Field(default_factory=list, description="Subreddits to watch")
    negative_keywords: list[str] = Field(default_factory=list, description="Exclude posts containing these")
    subreddit_blacklist: list[str] = Field(default_factory=list, description="Never fetch these subreddits")
    is_active: bool = Field(default=True, description="Include in scheduled discovery")


class CampaignUpdate(BaseModel):
    """Request schema for updating a campaign. Omitted fields are unchanged."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    website_url: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[list[str]] = None
    target_subreddits: Optional[list[str]] = None
    negative_keywords: Optional[list[str]] = None
    subreddit_blacklist: Optional[list[str]] = None
    is_active: Optional[bool] = None


class CampaignResponse(BaseModel):
    """Response schema for a campaign."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Campaign ID")
    owner_id: str = Field(..., description="Owning user ID")
    name: str
    website_url: Optional[str] = None
    description: Optional[str] = None
    keywords: list[str]
    target_subreddits: list[str]
    negative_keywords: list[str]
    subreddit_blacklist: list[str]
    is_active: bool
    last_manual_discovery_at: Optional[datetime] = None
    last_targeted_discovery_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CampaignListResponse(BaseModel):
    """Response schema for listing campaigns."""

    campaigns: list[CampaignResponse]
    total: int
