"""Engagement API routes.

Provides endpoints for:
- POST /engagement/leads/{lead_id}/reply - Draft a reply to a lead's post
- POST /engagement/refine - Rewrite a draft following an instruction
- POST /engagement/leads/{lead_id}/summary - Summarise a lead's post

Drafts are returned for review only; nothing is posted to Reddit.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, status

from redlead_core.api.deps import CurrentUserId, EngagementServiceDep, LeadsServiceDep
from redlead_core.api.schemas.engagement import (
    GenerateReplyRequest,
    GenerateReplyResponse,
    LeadSummaryResponse,
    RefineReplyRequest,
    RefineReplyResponse,
)
from redlead_core.domain.errors import LeadNotFoundError
from redlead_core.domain.services.engagement import (
    EngagementValidationError,
    GenerationError,
)
from redlead_core.domain.services.leads import LeadsService
from redlead_core.domain.stores.base import LeadRecord

router = APIRouter(prefix="/engagement", tags=["engagement"])


def _load_lead(leads_service: LeadsService, lead_id: str, user_id: str) -> LeadRecord:
    try:
        return leads_service.get_lead(lead_id, user_id)
    except LeadNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Lead {lead_id} not found",
        )


def _generation_failed(e: GenerationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post(
    "/leads/{lead_id}/reply",
    response_model=GenerateReplyResponse,
    summary="Draft a reply",
    description="Generate a plain-text reply draft for a lead's post.",
)
async def generate_reply(
    lead_id: str,
    user_id: CurrentUserId,
    leads_service: LeadsServiceDep,
    engagement: EngagementServiceDep,
    request: Optional[GenerateReplyRequest] = None,
) -> GenerateReplyResponse:
    """Draft a reply to a lead."""
    lead = _load_lead(leads_service, lead_id, user_id)
    fun_mode = request.fun_mode if request else False

    try:
        reply = await engagement.generate_reply(lead, fun_mode=fun_mode)
    except GenerationError as e:
        raise _generation_failed(e)

    return GenerateReplyResponse(lead_id=lead.id, replies=[reply])


@router.post(
    "/refine",
    response_model=RefineReplyResponse,
    summary="Refine a draft",
)
async def refine_reply(
    request: RefineReplyRequest,
    user_id: CurrentUserId,
    engagement: EngagementServiceDep,
) -> RefineReplyResponse:
    """Rewrite a draft following the user's instruction."""
    try:
        refined = await engagement.refine_reply(request.original_reply, request.instruction)
    except EngagementValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GenerationError as e:
        raise _generation_failed(e)

    return RefineReplyResponse(refined_reply=refined)


@router.post(
    "/leads/{lead_id}/summary",
    response_model=LeadSummaryResponse,
    summary="Summarise a lead",
)
async def summarize_lead(
    lead_id: str,
    user_id: CurrentUserId,
    leads_service: LeadsServiceDep,
    engagement: EngagementServiceDep,
) -> LeadSummaryResponse:
    lead = _load_lead(leads_service, lead_id, user_id)

    try:
        summary = await engagement.summarize_lead(lead)
    except EngagementValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GenerationError as e:
        raise _generation_failed(e)

    return LeadSummaryResponse(lead_id=lead.id, summary=summary)
