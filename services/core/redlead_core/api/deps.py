"""API dependencies for dependency injection."""

from typing import Annotated, AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException, status

from redlead_core.domain.services.campaigns import CampaignService
from redlead_core.domain.services.discovery import DiscoveryService
from redlead_core.domain.services.engagement import EngagementService
from redlead_core.domain.services.inference import get_generative_backend
from redlead_core.domain.services.leads import LeadsService
from redlead_core.domain.stores import Store, get_store


def get_store_dep() -> Store:
    """Get the process-wide store."""
    return get_store()


def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> str:
    """Get the caller's user id from the identity provider header.

    Raises:
        HTTPException: If the header is missing or blank.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return x_user_id.strip()


def get_campaign_service(store: Annotated[Store, Depends(get_store_dep)]) -> CampaignService:
    """Get the campaign service."""
    return CampaignService(store)


def get_leads_service(store: Annotated[Store, Depends(get_store_dep)]) -> LeadsService:
    """Get the leads service."""
    return LeadsService(store)


async def get_discovery_service(
    store: Annotated[Store, Depends(get_store_dep)],
) -> AsyncIterator[DiscoveryService]:
    """Get a discovery service; its network clients close after the request."""
    service = DiscoveryService.from_settings(store)
    try:
        yield service
    finally:
        await service.close()


async def get_engagement_service() -> AsyncIterator[EngagementService]:
    """Get an engagement service; its backend closes after the request."""
    service = EngagementService(get_generative_backend())
    try:
        yield service
    finally:
        await service.close()


# Type aliases for cleaner route signatures
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
StoreDep = Annotated[Store, Depends(get_store_dep)]
CampaignServiceDep = Annotated[CampaignService, Depends(get_campaign_service)]
LeadsServiceDep = Annotated[LeadsService, Depends(get_leads_service)]
DiscoveryServiceDep = Annotated[DiscoveryService, Depends(get_discovery_service)]
EngagementServiceDep = Annotated[EngagementService, Depends(get_engagement_service)]
