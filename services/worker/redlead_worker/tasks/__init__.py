"""RedLead Worker Tasks."""

# Import all tasks to register them with Celery
from redlead_worker.tasks import discovery  # noqa: F401
