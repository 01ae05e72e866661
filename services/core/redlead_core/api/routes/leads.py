"""Leads API routes.

Provides endpoints for:
- GET /leads/campaign/{campaign_id} - List a campaign's leads
- GET /leads/{lead_id} - Get lead by ID
- PATCH /leads/{lead_id}/status - Update lead status
"""

from typing import Annotated, Optional

from fastapi import APIRouter, HTTPException, Query, status

from redlead_core.api.deps import CurrentUserId, LeadsServiceDep
from redlead_core.api.schemas.leads import (
    LeadResponse,
    ListLeadsResponse,
    UpdateLeadStatusRequest,
)
from redlead_core.domain.errors import CampaignNotFoundError, LeadNotFoundError
from redlead_core.domain.models import VALID_LEAD_STATUSES
from redlead_core.domain.services.leads import InvalidStatusError

router = APIRouter(prefix="/leads", tags=["leads"])


@router.get(
    "/campaign/{campaign_id}",
    response_model=ListLeadsResponse,
    summary="List campaign leads",
    description="List leads for a campaign, best opportunity first.",
)
async def list_campaign_leads(
    campaign_id: str,
    user_id: CurrentUserId,
    leads_service: LeadsServiceDep,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    min_score: Annotated[Optional[int], Query(ge=0, le=100)] = None,
) -> ListLeadsResponse:
    """List a campaign's leads."""
    try:
        leads = leads_service.list_leads(
            campaign_id, user_id, status=status_filter, min_score=min_score
        )
    except InvalidStatusError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status: {status_filter}. Must be one of {list(VALID_LEAD_STATUSES)}",
        )
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ListLeadsResponse(
        leads=[LeadResponse.model_validate(lead) for lead in leads],
        total=len(leads),
    )


@router.get(
    "/{lead_id}",
    response_model=LeadResponse,
    summary="Get lead",
)
async def get_lead(
    lead_id: str,
    user_id: CurrentUserId,
    leads_service: LeadsServiceDep,
) -> LeadResponse:
    """Get a lead by ID."""
    try:
        lead = leads_service.get_lead(lead_id, user_id)
    except LeadNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Lead {lead_id} not found",
        )
    return LeadResponse.model_validate(lead)


@router.patch(
    "/{lead_id}/status",
    response_model=LeadResponse,
    summary="Update lead status",
    description="Update the status of a lead.",
)
async def update_lead_status(
    lead_id: str,
    request: UpdateLeadStatusRequest,
    user_id: CurrentUserId,
    leads_service: LeadsServiceDep,
) -> LeadResponse:
    """Update a lead's status."""
    try:
        lead = leads_service.update_status(lead_id, user_id, request.status)
    except InvalidStatusError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status: {request.status}. Must be one of {list(VALID_LEAD_STATUSES)}",
        )
    except LeadNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Lead {lead_id} not found",
        )
    return LeadResponse.model_validate(lead)
