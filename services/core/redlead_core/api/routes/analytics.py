"""Analytics API routes.

Provides endpoints for:
- GET /analytics/metrics/{campaign_id} - Lead counts, conversion rate,
  score distribution and per-subreddit performance
"""

from fastapi import APIRouter, HTTPException, status

from redlead_core.api.deps import CurrentUserId, LeadsServiceDep
from redlead_core.api.schemas.leads import CampaignMetricsResponse
from redlead_core.domain.errors import CampaignNotFoundError

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get(
    "/metrics/{campaign_id}",
    response_model=CampaignMetricsResponse,
    summary="Campaign metrics",
)
async def campaign_metrics(
    campaign_id: str,
    user_id: CurrentUserId,
    leads_service: LeadsServiceDep,
) -> CampaignMetricsResponse:
    """Get dashboard metrics for one of the caller's campaigns."""
    try:
        metrics = leads_service.campaign_metrics(campaign_id, user_id)
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CampaignMetricsResponse.model_validate(metrics)
