"""API schemas."""

from redlead_core.api.schemas.campaigns import (
    CampaignCreate,
    CampaignListResponse,
    CampaignResponse,
    CampaignUpdate,
)
from redlead_core.api.schemas.discovery import DiscoveryResponse
from redlead_core.api.schemas.engagement import (
    GenerateReplyRequest,
    GenerateReplyResponse,
    LeadSummaryResponse,
    RefineReplyRequest,
    RefineReplyResponse,
)
from redlead_core.api.schemas.leads import (
    CampaignMetricsResponse,
    LeadResponse,
    ListLeadsResponse,
    SubredditPerformanceResponse,
    UpdateLeadStatusRequest,
)

__all__ = [
    # Campaign schemas
    "CampaignCreate",
    "CampaignListResponse",
    "CampaignResponse",
    "CampaignUpdate",
    # Discovery schemas
    "DiscoveryResponse",
    # Engagement schemas
    "GenerateReplyRequest",
    "GenerateReplyResponse",
    "LeadSummaryResponse",
    "RefineReplyRequest",
    "RefineReplyResponse",
    # Lead schemas
    "CampaignMetricsResponse",
    "LeadResponse",
    "ListLeadsResponse",
    "SubredditPerformanceResponse",
    "UpdateLeadStatusRequest",
]
