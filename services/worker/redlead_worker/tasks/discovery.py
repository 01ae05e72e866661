"""Discovery tasks for scheduled lead discovery.

Provides background processing for:
1. Queuing a discovery run for every active campaign
2. Running discovery for a single campaign
"""

import asyncio
import logging
from typing import Any

from redlead_worker.celery_app import app

logger = logging.getLogger(__name__)


def _get_store() -> Any:
    """Get the store configured by STORE_BACKEND."""
    from redlead_core.domain.stores import get_store

    return get_store()


async def _run_discovery(store: Any, campaign_id: str, mode: str) -> Any:
    """Run one discovery pass and release its network clients."""
    from redlead_core.domain.services.discovery import DiscoveryService

    service = DiscoveryService.from_settings(store)
    try:
        return await service.run_discovery(campaign_id, mode=mode)
    finally:
        await service.close()


@app.task(
    bind=True,
    name="discovery.run_all_campaigns",
    max_retries=2,
    default_retry_delay=60,
)
def run_all_campaigns(self) -> dict:
    """Queue discovery for every active campaign.

    This is the periodic task scheduled by beat. Campaigns without
    keywords or subreddits are skipped here rather than failing later.

    Returns:
        dict: Summary with queued campaign count and task IDs.
    """
    try:
        store = _get_store()
        campaigns = store.list_campaigns(is_active=True)

        if not campaigns:
            logger.info("No active campaigns to run")
            return {
                "status": "success",
                "message": "No active campaigns",
                "queued": 0,
            }

        task_ids = []
        skipped = []
        for campaign in campaigns:
            if not campaign.keywords or not campaign.target_subreddits:
                skipped.append(campaign.id)
                continue
            task = run_campaign.delay(campaign_id=campaign.id)
            task_ids.append({"campaign_id": campaign.id, "task_id": task.id})
            logger.debug(f"Queued discovery for campaign {campaign.id}: {task.id}")

        logger.info(f"Queued discovery for {len(task_ids)} campaigns, skipped {len(skipped)}")
        return {
            "status": "success",
            "queued": len(task_ids),
            "skipped": skipped,
            "tasks": task_ids,
        }

    except Exception as exc:
        logger.error(f"Failed to queue campaign discovery: {str(exc)}", exc_info=True)

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=60)
        return {
            "status": "failed",
            "error": str(exc),
        }


@app.task(
    bind=True,
    name="discovery.run_campaign",
    max_retries=3,
    default_retry_delay=120,
)
def run_campaign(self, campaign_id: str, mode: str = "manual") -> dict:
    """Run discovery for one campaign.

    Configuration errors and unknown campaigns are reported without
    retrying. Store outages and unexpected errors are retried.

    Args:
        campaign_id: Campaign to run.
        mode: "manual" or "targeted".

    Returns:
        dict: Task result with the saved count and diagnostics.
    """
    from redlead_core.domain.errors import CampaignNotFoundError, ConfigurationError

    try:
        store = _get_store()
        result = asyncio.run(_run_discovery(store, campaign_id, mode))

    except (ConfigurationError, CampaignNotFoundError) as e:
        logger.warning(f"Discovery for campaign {campaign_id} not run: {e}")
        return {
            "status": "error",
            "error": str(e),
            "campaign_id": campaign_id,
        }

    except Exception as exc:
        logger.error(f"Discovery for campaign {campaign_id} failed: {str(exc)}", exc_info=True)

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=120)
        return {
            "status": "failed",
            "error": str(exc),
            "campaign_id": campaign_id,
        }

    logger.info(f"Discovery for campaign {campaign_id}: {result.message}")
    return {
        "status": "success",
        "campaign_id": campaign_id,
        "mode": mode,
        "count": result.saved_count,
        "message": result.message,
        "diagnostics": result.diagnostics.to_dict(),
    }
