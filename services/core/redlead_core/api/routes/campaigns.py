"""Campaign API routes.

Provides endpoints for:
- POST /campaigns - Create a campaign
- GET /campaigns - List the caller's campaigns
- GET /campaigns/{campaign_id} - Get a campaign
- PATCH /campaigns/{campaign_id} - Update a campaign
- DELETE /campaigns/{campaign_id} - Delete a campaign and its leads
"""

from typing import Annotated, Optional

from fastapi import APIRouter, HTTPException, Query, status

from redlead_core.api.deps import CampaignServiceDep, CurrentUserId
from redlead_core.api.schemas.campaigns import (
    CampaignCreate,
    CampaignListResponse,
    CampaignResponse,
    CampaignUpdate,
)
from redlead_core.domain.errors import CampaignNotFoundError, CampaignValidationError

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


@router.post(
    "",
    response_model=CampaignResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create campaign",
)
async def create_campaign(
    request: CampaignCreate,
    user_id: CurrentUserId,
    campaign_service: CampaignServiceDep,
) -> CampaignResponse:
    """Create a campaign for the caller."""
    try:
        campaign = campaign_service.create_campaign(owner_id=user_id, **request.model_dump())
    except CampaignValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CampaignResponse.model_validate(campaign)


@router.get(
    "",
    response_model=CampaignListResponse,
    summary="List campaigns",
)
async def list_campaigns(
    user_id: CurrentUserId,
    campaign_service: CampaignServiceDep,
    is_active: Annotated[Optional[bool], Query()] = None,
) -> CampaignListResponse:
    """List the caller's campaigns, newest first."""
    campaigns = campaign_service.list_campaigns(user_id, is_active=is_active)
    return CampaignListResponse(
        campaigns=[CampaignResponse.model_validate(c) for c in campaigns],
        total=len(campaigns),
    )


@router.get(
    "/{campaign_id}",
    response_model=CampaignResponse,
    summary="Get campaign",
)
async def get_campaign(
    campaign_id: str,
    user_id: CurrentUserId,
    campaign_service: CampaignServiceDep,
) -> CampaignResponse:
    """Get one of the caller's campaigns."""
    try:
        campaign = campaign_service.get_campaign(campaign_id, user_id)
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CampaignResponse.model_validate(campaign)


@router.patch(
    "/{campaign_id}",
    response_model=CampaignResponse,
    summary="Update campaign",
)
async def update_campaign(
    campaign_id: str,
    request: CampaignUpdate,
    user_id: CurrentUserId,
    campaign_service: CampaignServiceDep,
) -> CampaignResponse:
    """Update the fields present in the request body."""
    try:
        campaign = campaign_service.update_campaign(
            campaign_id, user_id, **request.model_dump(exclude_unset=True)
        )
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CampaignValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CampaignResponse.model_validate(campaign)


@router.delete(
    "/{campaign_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete campaign",
)
async def delete_campaign(
    campaign_id: str,
    user_id: CurrentUserId,
    campaign_service: CampaignServiceDep,
) -> None:
    """Delete a campaign and all of its leads."""
    try:
        campaign_service.delete_campaign(campaign_id, user_id)
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
