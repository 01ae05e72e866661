"""Reddit source integration.

This package contains:
- Public JSON client with ordered endpoint strategies
- Outbound proxy configuration
"""

from redlead_core.providers.reddit.proxy import ProxyConfig
from redlead_core.providers.reddit.public_json import (
    EndpointStrategy,
    RedditAPIError,
    RedditPublicClient,
    default_strategies,
    first_success,
    targeted_strategies,
)

__all__ = [
    "EndpointStrategy",
    "ProxyConfig",
    "RedditAPIError",
    "RedditPublicClient",
    "default_strategies",
    "first_success",
    "targeted_strategies",
]
