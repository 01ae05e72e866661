"""Exception hierarchy shared by the discovery pipeline and the stores."""


# =============================================================================
# DISCOVERY
# =============================================================================


class DiscoveryError(Exception):
    """Base exception for discovery runs."""

    pass


class ConfigurationError(DiscoveryError):
    """Campaign is missing the keywords or subreddits discovery needs.

    Raised before any network call; the run has no side effects.
    """

    pass


class CampaignNotFoundError(DiscoveryError):
    """Campaign does not exist or belongs to another user."""

    pass


class CampaignValidationError(Exception):
    """Campaign create/update input is invalid."""

    pass


# =============================================================================
# STORES
# =============================================================================


class StoreError(Exception):
    """Base exception for store operations."""

    pass


class StoreUnavailableError(StoreError):
    """The backing store cannot be reached.

    Retryable: callers surface it as a 503.
    """

    pass


class LeadNotFoundError(StoreError):
    """Lead does not exist."""

    pass


__all__ = [
    "DiscoveryError",
    "ConfigurationError",
    "CampaignNotFoundError",
    "CampaignValidationError",
    "StoreError",
    "StoreUnavailableError",
    "LeadNotFoundError",
]
