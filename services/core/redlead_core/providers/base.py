"""Source DTOs.

Normalized posts and the outcome of fetching a subreddit. A fetch never
raises for HTTP or network problems: it returns either ``FetchSuccess``
or ``SourceFailure`` carrying one ``EndpointAttempt`` per strategy tried.

- RedditPost: Normalized post data
- EndpointAttempt: One GET against one endpoint strategy
- FetchSuccess: The first strategy that returned a usable listing
- SourceFailure: Every strategy failed
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


@dataclass
class RedditPost:
    """Normalized post from a Reddit listing."""

    external_id: str
    title: str
    author: str
    subreddit: str
    url: str

    # Optional fields
    body_text: str = ""
    created_at: Optional[datetime] = None
    num_comments: int = 0
    upvote_ratio: float = 0.0
    raw_data: Optional[dict] = None

    @property
    def text(self) -> str:
        """Title and body joined, as seen by the keyword filters."""
        return f"{self.title} {self.body_text}"


@dataclass
class EndpointAttempt:
    """Record of one request against one endpoint strategy."""

    subreddit: str
    endpoint: str
    url: str
    succeeded: bool
    http_status: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for diagnostics."""
        return {
            "subreddit": self.subreddit,
            "endpoint": self.endpoint,
            "url": self.url,
            "succeeded": self.succeeded,
            "http_status": self.http_status,
            "error": self.error,
        }


# =============================================================================
# FETCH RESULTS
# =============================================================================


@dataclass
class FetchSuccess:
    """Posts from the first strategy that succeeded.

    ``server_filtered`` is True when the winning strategy was a search,
    meaning Reddit already matched the keywords.
    """

    subreddit: str
    endpoint: str
    url: str
    posts: list[RedditPost]
    server_filtered: bool = False
    attempts: list[EndpointAttempt] = field(default_factory=list)

    ok = True


@dataclass
class SourceFailure:
    """All strategies failed for a subreddit."""

    subreddit: str
    attempts: list[EndpointAttempt] = field(default_factory=list)

    ok = False

    @property
    def blocked(self) -> bool:
        """Every attempt was answered with HTTP 403."""
        return bool(self.attempts) and all(a.http_status == 403 for a in self.attempts)

    @property
    def rate_limited(self) -> bool:
        """At least one attempt was answered with HTTP 429."""
        return any(a.http_status == 429 for a in self.attempts)

    @property
    def last_status(self) -> Optional[int]:
        """HTTP status of the last attempt that got a response."""
        for attempt in reversed(self.attempts):
            if attempt.http_status is not None:
                return attempt.http_status
        return None

    @property
    def error_message(self) -> str:
        """Human-readable summary of the attempts."""
        parts = []
        for attempt in self.attempts:
            detail = attempt.error or f"HTTP {attempt.http_status}"
            parts.append(f"{attempt.endpoint}: {detail}")
        return "; ".join(parts) or "no endpoints attempted"


FetchResult = Union[FetchSuccess, SourceFailure]


__all__ = [
    "RedditPost",
    "EndpointAttempt",
    "FetchSuccess",
    "SourceFailure",
    "FetchResult",
]
