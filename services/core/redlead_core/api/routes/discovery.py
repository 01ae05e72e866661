"""Discovery API routes.

Provides endpoints for:
- POST /leads/discover/manual/{campaign_id} - New/hot/search over every
  target subreddit plus a global search
- POST /leads/campaign/{campaign_id}/discover/targeted - Relevance search
  over the top two keywords
"""

import logging

from fastapi import APIRouter, HTTPException, status

from redlead_core.api.deps import CurrentUserId, DiscoveryServiceDep
from redlead_core.api.schemas.discovery import DiscoveryResponse
from redlead_core.domain.errors import (
    CampaignNotFoundError,
    ConfigurationError,
    StoreUnavailableError,
)
from redlead_core.domain.models import DiscoveryMode
from redlead_core.domain.services.discovery import DiscoveryService

router = APIRouter(prefix="/leads", tags=["discovery"])
logger = logging.getLogger(__name__)


async def _run(
    service: DiscoveryService,
    campaign_id: str,
    owner_id: str,
    mode: str,
) -> DiscoveryResponse:
    try:
        result = await service.run_discovery(campaign_id, owner_id=owner_id, mode=mode)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreUnavailableError as e:
        logger.error(f"Discovery for campaign {campaign_id} failed, store unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Lead store is temporarily unavailable",
        )
    except Exception as e:
        logger.exception(f"Discovery for campaign {campaign_id} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Discovery failed: {e}",
        )

    return DiscoveryResponse(
        message=result.message,
        count=result.saved_count,
        diagnostics=result.diagnostics.to_dict(),
    )


@router.post(
    "/discover/manual/{campaign_id}",
    response_model=DiscoveryResponse,
    summary="Run manual discovery",
    description="Fetch target subreddits (new, hot, search) plus a global search and save scored leads.",
)
async def discover_manual(
    campaign_id: str,
    user_id: CurrentUserId,
    service: DiscoveryServiceDep,
) -> DiscoveryResponse:
    """Run manual discovery for a campaign."""
    return await _run(service, campaign_id, user_id, DiscoveryMode.MANUAL)


@router.post(
    "/campaign/{campaign_id}/discover/targeted",
    response_model=DiscoveryResponse,
    summary="Run targeted discovery",
    description="Relevance-sorted search of target subreddits for the top two keywords.",
)
async def discover_targeted(
    campaign_id: str,
    user_id: CurrentUserId,
    service: DiscoveryServiceDep,
) -> DiscoveryResponse:
    """Run targeted discovery for a campaign."""
    return await _run(service, campaign_id, user_id, DiscoveryMode.TARGETED)
