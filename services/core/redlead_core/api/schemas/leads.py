"""Leads API schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# LEAD SCHEMAS
# =============================================================================


class LeadResponse(BaseModel):
    """Response schema for a lead."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Lead ID")
    campaign_id: str = Field(..., description="Campaign ID")
    external_post_id: str = Field(..., description="Reddit post ID")
    title: str
    author: str
    subreddit_name: str
    url: str
    body_text: str
    posted_at: Optional[datetime] = Field(default=None, description="When the post was created")
    opportunity_score: int = Field(..., ge=0, le=100)
    intent: str
    status: str
    num_comments: int = 0
    upvote_ratio: float = 0.0
    discovered_at: Optional[datetime] = Field(default=None, description="When the lead was first found")
    updated_at: Optional[datetime] = None


class ListLeadsResponse(BaseModel):
    """Response schema for listing a campaign's leads."""

    leads: list[LeadResponse]
    total: int


class UpdateLeadStatusRequest(BaseModel):
    """Request schema for updating lead status."""

    status: str = Field(..., description="New status: new, replied, saved, ignored")


# =============================================================================
# ANALYTICS SCHEMAS
# =============================================================================


class SubredditPerformanceResponse(BaseModel):
    """Lead volume and average score for one subreddit."""

    model_config = ConfigDict(from_attributes=True)

    subreddit: str
    lead_count: int
    average_score: float


class CampaignMetricsResponse(BaseModel):
    """Dashboard metrics for a campaign."""

    model_config = ConfigDict(from_attributes=True)

    campaign_id: str
    total_leads: int
    new_leads: int
    replied_leads: int
    conversion_rate: float
    opportunity_score_distribution: dict[str, int]
    subreddit_performance: list[SubredditPerformanceResponse]
