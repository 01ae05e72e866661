"""Source integrations for RedLead.

This package contains:
- Base: Normalized post DTOs and fetch results
- Reddit: Public JSON client, endpoint strategies, outbound proxy
"""

from redlead_core.providers.base import (
    EndpointAttempt,
    FetchResult,
    FetchSuccess,
    RedditPost,
    SourceFailure,
)

__all__ = [
    "EndpointAttempt",
    "FetchResult",
    "FetchSuccess",
    "RedditPost",
    "SourceFailure",
]
