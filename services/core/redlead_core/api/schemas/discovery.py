"""Discovery API schemas."""

from pydantic import BaseModel, Field


class DiscoveryResponse(BaseModel):
    """Response schema for a discovery run."""

    message: str = Field(..., description="Human-readable outcome")
    count: int = Field(..., description="Leads created or updated")
    diagnostics: dict = Field(default_factory=dict, description="Per-subreddit run details")
