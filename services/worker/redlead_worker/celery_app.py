"""Celery application configuration for RedLead Worker."""

import os

from celery import Celery
from celery.signals import setup_logging

from redlead_core.config import get_settings

# Celery configuration from environment
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/2")

app = Celery(
    "redlead_worker",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    include=[
        "redlead_worker.tasks.discovery",
    ],
)

# Celery configuration
app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Time limits (seconds); a run budgets itself to ~50s of fetching
    task_soft_time_limit=180,
    task_time_limit=300,
    # Retry settings
    task_default_retry_delay=60,
    # Queue routing
    task_routes={
        "discovery.*": {"queue": "discovery"},
    },
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=2,
)

# Beat schedule for periodic tasks
app.conf.beat_schedule = {
    "discovery-all-campaigns-periodic": {
        "task": "discovery.run_all_campaigns",
        "schedule": get_settings().discovery_schedule_minutes * 60.0,
        "args": (),
    },
}


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    """Use RedLead's JSON logging instead of Celery's default handlers."""
    from redlead_core.observability import configure_logging

    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service_name="redlead-worker",
    )


if __name__ == "__main__":
    app.start()
