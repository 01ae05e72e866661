"""API routes."""

from redlead_core.api.routes import analytics, campaigns, discovery, engagement, leads

__all__ = ["analytics", "campaigns", "discovery", "engagement", "leads"]
