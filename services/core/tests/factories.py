"""Test data factories for RedLead Core.

This module provides factory functions for campaigns, leads and Reddit
listing payloads. Use these instead of building dicts and records by hand
so that tests stay consistent.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from redlead_core.domain.stores.base import CampaignRecord, LeadFields, LeadRecord, Store
from redlead_core.providers.base import EndpointAttempt, FetchSuccess, RedditPost, SourceFailure


def utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


# -----------------------------------------------------------------------------
# Campaign / Lead Factories
# -----------------------------------------------------------------------------


def create_campaign(
    store: Store,
    owner_id: str = "user-1",
    name: str = "CRM launch",
    keywords: Optional[list[str]] = None,
    target_subreddits: Optional[list[str]] = None,
    **kwargs: Any,
) -> CampaignRecord:
    """Create a campaign in a store for testing."""
    return store.create_campaign(
        owner_id=owner_id,
        name=name,
        keywords=["crm"] if keywords is None else keywords,
        target_subreddits=["smallbusiness"] if target_subreddits is None else target_subreddits,
        **kwargs,
    )


def create_lead(
    store: Store,
    campaign_id: str,
    external_post_id: str = "abc123",
    opportunity_score: int = 50,
    subreddit_name: str = "smallbusiness",
    posted_at: Optional[datetime] = None,
    **kwargs: Any,
) -> LeadRecord:
    """Create a lead in a store for testing."""
    fields = LeadFields(
        title=kwargs.pop("title", f"Post {external_post_id}"),
        author=kwargs.pop("author", "someone"),
        subreddit_name=subreddit_name,
        url=kwargs.pop("url", f"https://reddit.com/r/{subreddit_name}/comments/{external_post_id}/"),
        body_text=kwargs.pop("body_text", ""),
        posted_at=posted_at,
        opportunity_score=opportunity_score,
        **kwargs,
    )
    lead, _ = store.upsert_lead(campaign_id, external_post_id, fields)
    return lead


# -----------------------------------------------------------------------------
# Reddit Payload Factories
# -----------------------------------------------------------------------------


def reddit_child(
    post_id: str,
    title: str,
    selftext: str = "",
    subreddit: str = "smallbusiness",
    created_utc: float = 1700000000.0,
    **kwargs: Any,
) -> dict[str, Any]:
    """Create one ``t3`` child of a Reddit listing."""
    data = {
        "id": post_id,
        "title": title,
        "selftext": selftext,
        "author": kwargs.pop("author", "redditor"),
        "subreddit": subreddit,
        "permalink": f"/r/{subreddit}/comments/{post_id}/slug/",
        "created_utc": created_utc,
        "num_comments": kwargs.pop("num_comments", 3),
        "upvote_ratio": kwargs.pop("upvote_ratio", 0.9),
    }
    data.update(kwargs)
    return {"kind": "t3", "data": data}


def reddit_listing(*children: dict[str, Any]) -> dict[str, Any]:
    """Wrap children in a Reddit listing envelope."""
    return {"kind": "Listing", "data": {"after": None, "children": list(children)}}


def make_post(
    post_id: str,
    title: str,
    body_text: str = "",
    subreddit: str = "smallbusiness",
    **kwargs: Any,
) -> RedditPost:
    """Create a normalized RedditPost."""
    return RedditPost(
        external_id=post_id,
        title=title,
        author=kwargs.pop("author", "redditor"),
        subreddit=subreddit,
        url=f"https://reddit.com/r/{subreddit}/comments/{post_id}/slug/",
        body_text=body_text,
        created_at=kwargs.pop("created_at", utcnow()),
        **kwargs,
    )


def fetch_success(
    subreddit: str,
    posts: list[RedditPost],
    endpoint: str = "new",
    server_filtered: bool = False,
) -> FetchSuccess:
    """Create a successful fetch result with one attempt."""
    url = f"https://www.reddit.com/r/{subreddit}/{endpoint}.json"
    return FetchSuccess(
        subreddit=subreddit,
        endpoint=endpoint,
        url=url,
        posts=posts,
        server_filtered=server_filtered,
        attempts=[EndpointAttempt(subreddit, endpoint, url, True, http_status=200)],
    )


def source_failure(subreddit: str, *statuses: int) -> SourceFailure:
    """Create a failed fetch result, one attempt per HTTP status."""
    endpoints = ["new", "hot", "search"]
    return SourceFailure(
        subreddit=subreddit,
        attempts=[
            EndpointAttempt(
                subreddit,
                endpoints[i % len(endpoints)],
                f"https://www.reddit.com/r/{subreddit}/{endpoints[i % len(endpoints)]}.json",
                False,
                http_status=status,
            )
            for i, status in enumerate(statuses)
        ],
    )


# -----------------------------------------------------------------------------
# Fakes
# -----------------------------------------------------------------------------


class ScriptedBackend:
    """Generative backend that answers with canned scores keyed by post title.

    Titles missing from ``scores`` get ``default_score``. With ``fail`` set,
    every call raises InferenceError.
    With ``text`` set every call returns that text instead (an empty string
    behaves like a chain where no backend answered).
    """

    def __init__(
        self,
        scores: Optional[dict[str, int]] = None,
        default_score: int = 70,
        intent: str = "Buying",
        fail: bool = False,
        text: Optional[str] = None,
    ):
        self.scores = scores or {}
        self.default_score = default_score
        self.intent = intent
        self.fail = fail
        self.text = text
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> Optional[str]:
        from redlead_core.domain.services.inference import InferenceError

        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        if self.fail:
            raise InferenceError("backend down")
        if self.text is not None:
            return self.text or None

        title = user_prompt.split("\n", 1)[0].removeprefix("Title: ")
        score = self.scores.get(title, self.default_score)
        return f'{{"score": {score}, "intent": "{self.intent}", "reason": "scripted"}}'

    async def close(self) -> None:
        self.closed = True


class FakeFetcher:
    """Stand-in for RedditPublicClient returning prepared fetch results.

    Subreddits missing from ``results`` succeed with no posts.
    """

    def __init__(
        self,
        results: Optional[dict[str, Any]] = None,
        global_result: Optional[Any] = None,
    ):
        from redlead_core.providers.reddit.proxy import ProxyConfig

        self.results = results or {}
        self.global_result = global_result
        self.proxy = ProxyConfig()
        self.listing_limit = 25
        self.fetch_calls: list[tuple[str, Optional[str], list]] = []
        self.search_calls: list[str] = []
        self.closed = False

    async def fetch_candidates(self, subreddit, primary_keyword, strategies=None):
        self.fetch_calls.append((subreddit, primary_keyword, list(strategies or [])))
        result = self.results.get(subreddit)
        if result is None:
            return fetch_success(subreddit, [])
        return result

    async def search_all(self, query, limit=25):
        self.search_calls.append(query)
        if self.global_result is None:
            return fetch_success("all", [], endpoint="global_search", server_filtered=True)
        return self.global_result

    async def close(self) -> None:
        self.closed = True
