"""Reddit public JSON client.

Fetches subreddit listings from Reddit's unauthenticated ``.json``
endpoints. Each subreddit is tried against an ordered list of endpoint
strategies; the first one that answers 2xx with a well-formed listing
wins. Failures never raise: they come back as ``SourceFailure`` with a
record of every attempt.

Usage:
    async with RedditPublicClient.from_settings(get_settings()) as client:
        result = await client.fetch_candidates("smallbusiness", "crm")
        if result.ok:
            for post in result.posts:
                print(post.title)
        elif result.blocked:
            print("egress IP blocked")
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, Optional, Sequence, TypeVar
from urllib.parse import quote, urlencode

import httpx

from redlead_core.config import DEFAULT_BROWSER_USER_AGENT, Settings
from redlead_core.providers.base import (
    EndpointAttempt,
    FetchResult,
    FetchSuccess,
    RedditPost,
    SourceFailure,
)
from redlead_core.providers.reddit.proxy import ProxyConfig

logger = logging.getLogger(__name__)


BASE_URL = "https://www.reddit.com"
DEFAULT_LISTING_LIMIT = 25
TARGETED_LISTING_LIMIT = 10
GLOBAL_ENDPOINT = "global_search"


class RedditAPIError(Exception):
    """Raised when a request to Reddit fails below the HTTP layer."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# ENDPOINT STRATEGIES
# =============================================================================


@dataclass(frozen=True)
class EndpointStrategy:
    """One way of listing a subreddit.

    Attributes:
        name: Strategy name reported in diagnostics (new, hot, search)
        listing: Listing path segment (``new`` -> ``/r/{sub}/new.json``)
        params: Extra query parameters, in order
        query: Fixed search query; None means the caller's keyword
        server_filtered: True when Reddit applies the keywords itself
    """

    name: str
    listing: str
    params: tuple[tuple[str, str], ...] = ()
    query: Optional[str] = None
    server_filtered: bool = False

    def build_url(self, subreddit: str, keyword: Optional[str] = None) -> str:
        """Build the request URL for a subreddit."""
        params: list[tuple[str, str]] = []
        if self.listing == "search":
            params.append(("q", self.query or keyword or ""))
        params.extend(self.params)
        query_string = urlencode(params, quote_via=quote)
        return f"{BASE_URL}/r/{subreddit}/{self.listing}.json?{query_string}"


def default_strategies(limit: int = DEFAULT_LISTING_LIMIT) -> list[EndpointStrategy]:
    """Newest, then hottest, then a subreddit-restricted keyword search."""
    return [
        EndpointStrategy(name="new", listing="new", params=(("limit", str(limit)),)),
        EndpointStrategy(name="hot", listing="hot", params=(("limit", str(limit)),)),
        EndpointStrategy(
            name="search",
            listing="search",
            params=(("restrict_sr", "1"), ("sort", "new"), ("limit", str(limit))),
            server_filtered=True,
        ),
    ]


def targeted_strategies(
    keywords: Sequence[str],
    limit: int = TARGETED_LISTING_LIMIT,
) -> list[EndpointStrategy]:
    """A single relevance-sorted search over the top two keywords."""
    query = " OR ".join(k for k in list(keywords)[:2] if k)
    return [
        EndpointStrategy(
            name="search",
            listing="search",
            params=(("restrict_sr", "1"), ("sort", "relevance"), ("limit", str(limit))),
            query=query,
            server_filtered=True,
        ),
    ]


S = TypeVar("S")
R = TypeVar("R")


async def first_success(
    candidates: Iterable[S],
    attempt: Callable[[S], Awaitable[R]],
    succeeded: Callable[[R], bool],
) -> tuple[Optional[R], list[R]]:
    """Try candidates in order until one succeeds.

    Args:
        candidates: Ordered candidates to try
        attempt: Coroutine producing an outcome for one candidate
        succeeded: Predicate deciding whether an outcome is a success

    Returns:
        Tuple of (winning outcome or None, every outcome in order)
    """
    outcomes: list[R] = []
    for candidate in candidates:
        outcome = await attempt(candidate)
        outcomes.append(outcome)
        if succeeded(outcome):
            return outcome, outcomes
    return None, outcomes


@dataclass
class _StrategyOutcome:
    strategy: EndpointStrategy
    attempt: EndpointAttempt
    posts: Optional[list[RedditPost]] = None


# =============================================================================
# MAPPING
# =============================================================================


def _parse_timestamp(ts: Optional[float]) -> Optional[datetime]:
    """Parse a Reddit UTC timestamp."""
    if ts is None:
        return None
    try:
        return datetime.fromtimestamp(float(ts), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def _map_post(data: dict, subreddit: str) -> RedditPost:
    """Map Reddit listing child data to RedditPost."""
    permalink = data.get("permalink") or ""
    return RedditPost(
        external_id=str(data.get("id", "")),
        title=data.get("title") or "",
        author=data.get("author") or "[deleted]",
        subreddit=data.get("subreddit") or subreddit,
        url=f"https://reddit.com{permalink}" if permalink else data.get("url", ""),
        body_text=data.get("selftext") or "",
        created_at=_parse_timestamp(data.get("created_utc")),
        num_comments=int(data.get("num_comments") or 0),
        upvote_ratio=float(data.get("upvote_ratio") or 0.0),
        raw_data=data,
    )


def parse_listing(payload: object, subreddit: str) -> Optional[list[RedditPost]]:
    """Parse a listing envelope ``{data: {children: [{data: {...}}]}}``.

    Returns:
        Posts in listing order, or None if the envelope is malformed
    """
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    children = data.get("children")
    if not isinstance(children, list):
        return None

    posts = []
    for child in children:
        if not isinstance(child, dict):
            continue
        post_data = child.get("data")
        if not isinstance(post_data, dict) or not post_data.get("id"):
            continue
        posts.append(_map_post(post_data, subreddit))
    return posts


# =============================================================================
# CLIENT
# =============================================================================


class RedditPublicClient:
    """Client for Reddit's unauthenticated JSON listings."""

    def __init__(
        self,
        user_agent: str = DEFAULT_BROWSER_USER_AGENT,
        timeout: float = 15.0,
        listing_limit: int = DEFAULT_LISTING_LIMIT,
        proxy: Optional[ProxyConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            user_agent: Browser-like User-Agent; Reddit rejects bot-looking ones
            timeout: Hard per-attempt timeout in seconds
            listing_limit: Posts requested per listing
            proxy: Outbound proxy; None means direct egress
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.user_agent = user_agent
        self.timeout = timeout
        self.listing_limit = listing_limit
        self.proxy = proxy or ProxyConfig()
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RedditPublicClient":
        """Create a client configured from application settings."""
        return cls(
            user_agent=settings.reddit_user_agent,
            timeout=settings.reddit_request_timeout,
            listing_limit=settings.reddit_listing_limit,
            proxy=ProxyConfig.from_settings(settings),
            transport=transport,
        )

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            kwargs: dict = {"timeout": self.timeout, "follow_redirects": True}
            if self._transport is not None:
                kwargs["transport"] = self._transport
            else:
                proxy_url = self.proxy.proxy_url()
                if proxy_url:
                    kwargs["proxy"] = proxy_url
            if self.proxy.enabled and not self.proxy.configured:
                logger.warning(
                    f"Proxy {self.proxy.type} enabled but not configured, using direct egress"
                )
            self._http_client = httpx.AsyncClient(**kwargs)
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "RedditPublicClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self, subreddit: Optional[str] = None) -> dict[str, str]:
        referer = f"{BASE_URL}/r/{subreddit}/" if subreddit else f"{BASE_URL}/"
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            "Accept-Language": "en-US,en;q=0.9",
            "Referer": referer,
            "Origin": BASE_URL,
        }

    async def _get(self, url: str, subreddit: Optional[str]) -> httpx.Response:
        """GET a Reddit URL through the configured proxy.

        Raises:
            RedditAPIError: On network errors and timeouts
        """
        client = await self._get_http_client()
        try:
            return await client.get(
                self.proxy.rewrite_url(url),
                headers=self._headers(subreddit),
            )
        except httpx.TimeoutException as e:
            raise RedditAPIError(f"Timeout after {self.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise RedditAPIError(f"Request failed: {e}") from e

    async def _attempt(
        self,
        subreddit: str,
        endpoint: str,
        url: str,
    ) -> tuple[EndpointAttempt, Optional[list[RedditPost]]]:
        """Perform one GET and classify its outcome."""
        try:
            response = await self._get(url, subreddit)
        except RedditAPIError as e:
            logger.warning(f"r/{subreddit} {endpoint}: {e}")
            return EndpointAttempt(subreddit, endpoint, url, False, error=str(e)), None

        if not response.is_success:
            logger.warning(f"r/{subreddit} {endpoint}: HTTP {response.status_code}")
            return (
                EndpointAttempt(subreddit, endpoint, url, False, http_status=response.status_code),
                None,
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None
        posts = parse_listing(payload, subreddit)
        if posts is None:
            logger.warning(f"r/{subreddit} {endpoint}: malformed listing")
            return (
                EndpointAttempt(
                    subreddit,
                    endpoint,
                    url,
                    False,
                    http_status=response.status_code,
                    error="Malformed listing payload",
                ),
                None,
            )

        return (
            EndpointAttempt(subreddit, endpoint, url, True, http_status=response.status_code),
            posts,
        )

    async def fetch_candidates(
        self,
        subreddit: str,
        primary_keyword: Optional[str],
        strategies: Optional[Sequence[EndpointStrategy]] = None,
    ) -> FetchResult:
        """Fetch posts from a subreddit, falling back across strategies.

        Args:
            subreddit: Subreddit name without the ``r/`` prefix
            primary_keyword: Keyword used by search strategies
            strategies: Ordered strategies; defaults to new, hot, search

        Returns:
            FetchSuccess from the first working strategy, else SourceFailure
        """
        strategies = list(strategies) if strategies else default_strategies(self.listing_limit)

        async def attempt(strategy: EndpointStrategy) -> _StrategyOutcome:
            url = strategy.build_url(subreddit, primary_keyword)
            record, posts = await self._attempt(subreddit, strategy.name, url)
            return _StrategyOutcome(strategy=strategy, attempt=record, posts=posts)

        winner, outcomes = await first_success(
            strategies, attempt, lambda outcome: outcome.attempt.succeeded
        )
        attempts = [o.attempt for o in outcomes]

        if winner is None:
            return SourceFailure(subreddit=subreddit, attempts=attempts)

        logger.info(
            f"r/{subreddit}: {len(winner.posts or [])} posts via {winner.strategy.name}"
        )
        return FetchSuccess(
            subreddit=subreddit,
            endpoint=winner.strategy.name,
            url=winner.attempt.url,
            posts=winner.posts or [],
            server_filtered=winner.strategy.server_filtered,
            attempts=attempts,
        )

    async def search_all(self, query: str, limit: int = DEFAULT_LISTING_LIMIT) -> FetchResult:
        """Search all of Reddit for a query, newest first."""
        params = urlencode(
            [("q", query), ("sort", "new"), ("limit", str(limit))], quote_via=quote
        )
        url = f"{BASE_URL}/search.json?{params}"
        record, posts = await self._attempt("all", GLOBAL_ENDPOINT, url)
        if posts is None:
            return SourceFailure(subreddit="all", attempts=[record])
        return FetchSuccess(
            subreddit="all",
            endpoint=GLOBAL_ENDPOINT,
            url=url,
            posts=posts,
            server_filtered=True,
            attempts=[record],
        )


__all__ = [
    "BASE_URL",
    "EndpointStrategy",
    "RedditAPIError",
    "RedditPublicClient",
    "default_strategies",
    "first_success",
    "parse_listing",
    "targeted_strategies",
]
