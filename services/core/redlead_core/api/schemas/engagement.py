"""Engagement API schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class GenerateReplyRequest(BaseModel):
    """Request schema for drafting a reply."""

    fun_mode: bool = Field(default=False, description="Casual, witty tone instead of professional")


class GenerateReplyResponse(BaseModel):
    """Drafted replies for a lead, for the user to review."""

    lead_id: str
    replies: list[str]


class RefineReplyRequest(BaseModel):
    """Request schema for refining a draft."""

    original_reply: str = Field(..., description="Draft to rewrite")
    instruction: Optional[str] = Field(default=None, description="How to change it")


class RefineReplyResponse(BaseModel):
    refined_reply: str


class LeadSummaryResponse(BaseModel):
    """Plain-text summary of a lead's post."""

    lead_id: str
    summary: str
