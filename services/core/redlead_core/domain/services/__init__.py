"""Domain services for RedLead."""

from redlead_core.domain.services.campaigns import CampaignService
from redlead_core.domain.services.discovery import (
    DiscoveryDiagnostics,
    DiscoveryResult,
    DiscoveryService,
)
from redlead_core.domain.services.keyword_filter import is_relevant, matches_negative
from redlead_core.domain.services.leads import CampaignMetrics, LeadsService
from redlead_core.domain.services.opportunity_scoring import (
    OpportunityScore,
    OpportunityScorer,
)

__all__ = [
    "CampaignMetrics",
    "CampaignService",
    "DiscoveryDiagnostics",
    "DiscoveryResult",
    "DiscoveryService",
    "LeadsService",
    "OpportunityScore",
    "OpportunityScorer",
    "is_relevant",
    "matches_negative",
]
