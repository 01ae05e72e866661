"""Discovery orchestrator.

Runs one discovery pass for a campaign:

1. Validate the campaign (ownership, keywords, subreddits) before any
   network call
2. Fetch each target subreddit in turn, falling back across endpoint
   strategies, then keyword-filter, dedupe and score the posts
3. Manual runs only: search all of Reddit for the primary keyword and
   keep posts scoring above the global threshold
4. Upsert every candidate as a lead
5. Stamp the campaign's last-discovery time and summarise the run

Individual subreddit and lead failures are recorded in the diagnostics
and skipped. Only configuration errors, unknown campaigns and a fully
unavailable store abort a run.

Usage:
    service = DiscoveryService.from_settings(store=get_store())
    try:
        result = await service.run_discovery(campaign_id, owner_id="user-1")
    finally:
        await service.close()

    print(result.message, result.saved_count)
    print(result.diagnostics.to_dict())
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from redlead_core.config import Settings, get_settings
from redlead_core.domain.errors import (
    CampaignNotFoundError,
    ConfigurationError,
    StoreError,
    StoreUnavailableError,
)
from redlead_core.domain.models import VALID_DISCOVERY_MODES, DiscoveryMode
from redlead_core.domain.services.inference import get_generative_backend
from redlead_core.domain.services.keyword_filter import is_relevant, matches_negative
from redlead_core.domain.services.opportunity_scoring import (
    OpportunityScore,
    OpportunityScorer,
)
from redlead_core.domain.stores.base import CampaignRecord, LeadFields, Store
from redlead_core.observability import get_logger
from redlead_core.providers.base import EndpointAttempt, FetchSuccess, RedditPost
from redlead_core.providers.reddit.public_json import (
    RedditPublicClient,
    default_strategies,
    targeted_strategies,
)

logger = get_logger(__name__)


# =============================================================================
# DIAGNOSTICS
# =============================================================================


@dataclass
class SubredditError:
    """A subreddit that could not be fetched."""

    subreddit: str
    error_message: str
    http_status: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "subreddit": self.subreddit,
            "error_message": self.error_message,
            "http_status": self.http_status,
        }


@dataclass
class GlobalPassSummary:
    """Outcome of the cross-subreddit search."""

    query: str
    succeeded: bool = False
    posts_found: int = 0
    duplicates_skipped: int = 0
    filtered_out: int = 0
    below_threshold: int = 0
    not_scored: int = 0
    posts_kept: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "succeeded": self.succeeded,
            "posts_found": self.posts_found,
            "duplicates_skipped": self.duplicates_skipped,
            "filtered_out": self.filtered_out,
            "below_threshold": self.below_threshold,
            "not_scored": self.not_scored,
            "posts_kept": self.posts_kept,
            "error": self.error,
        }


@dataclass
class DiscoveryDiagnostics:
    """Per-run record of what was tried and what came of it."""

    campaign_id: str
    mode: str
    subreddits_attempted: list[str] = field(default_factory=list)
    subreddits_succeeded: list[str] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)
    attempts: list[EndpointAttempt] = field(default_factory=list)
    errors: list[SubredditError] = field(default_factory=list)
    blocked_subreddits: list[str] = field(default_factory=list)
    rate_limited_subreddits: list[str] = field(default_factory=list)
    posts_examined: int = 0
    posts_matched: int = 0
    duplicates_skipped: int = 0
    negative_filtered: int = 0
    scoring_degraded: int = 0
    leads_created: int = 0
    leads_updated: int = 0
    leads_failed: int = 0
    time_budget_exceeded: bool = False
    global_pass: Optional[GlobalPassSummary] = None
    proxy: dict = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def all_blocked(self) -> bool:
        """Every attempted subreddit answered 403 on every strategy."""
        if not self.subreddits_attempted:
            return False
        return set(self.subreddits_attempted) <= set(self.blocked_subreddits)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "campaign_id": self.campaign_id,
            "mode": self.mode,
            "subreddits_attempted": list(self.subreddits_attempted),
            "subreddits_succeeded": list(self.subreddits_succeeded),
            "skipped": list(self.skipped),
            "attempts": [a.to_dict() for a in self.attempts],
            "errors": [e.to_dict() for e in self.errors],
            "blocked_subreddits": list(self.blocked_subreddits),
            "rate_limited_subreddits": list(self.rate_limited_subreddits),
            "all_blocked": self.all_blocked,
            "posts_examined": self.posts_examined,
            "posts_matched": self.posts_matched,
            "duplicates_skipped": self.duplicates_skipped,
            "negative_filtered": self.negative_filtered,
            "scoring_degraded": self.scoring_degraded,
            "leads_created": self.leads_created,
            "leads_updated": self.leads_updated,
            "leads_failed": self.leads_failed,
            "time_budget_exceeded": self.time_budget_exceeded,
            "global_pass": self.global_pass.to_dict() if self.global_pass else None,
            "proxy": dict(self.proxy),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }


@dataclass
class DiscoveryResult:
    """Outcome of a discovery run."""

    saved_count: int
    message: str
    diagnostics: DiscoveryDiagnostics

    @property
    def created_count(self) -> int:
        return self.diagnostics.leads_created

    @property
    def updated_count(self) -> int:
        return self.diagnostics.leads_updated


@dataclass
class _Candidate:
    post: RedditPost
    score: OpportunityScore


# =============================================================================
# HELPERS
# =============================================================================


def normalize_subreddit(name: str) -> str:
    """Strip whitespace and any ``r/`` or ``/r/`` prefix."""
    name = (name or "").strip()
    for prefix in ("/r/", "r/"):
        if name.lower().startswith(prefix):
            name = name[len(prefix):]
            break
    return name.strip().strip("/")


def _clean(values: Optional[list[str]]) -> list[str]:
    return [v.strip() for v in (values or []) if v and v.strip()]


def _lead_fields(candidate: _Candidate) -> LeadFields:
    post = candidate.post
    return LeadFields(
        title=post.title,
        author=post.author,
        subreddit_name=post.subreddit,
        url=post.url,
        body_text=post.body_text,
        posted_at=post.created_at,
        opportunity_score=candidate.score.score,
        intent=candidate.score.intent,
        num_comments=post.num_comments,
        upvote_ratio=post.upvote_ratio,
    )


# =============================================================================
# SERVICE
# =============================================================================


class DiscoveryService:
    """Runs discovery for campaigns.

    Subreddits are processed sequentially with a fixed delay between
    them, a longer cooldown after a 429, and an overall time budget.
    """

    def __init__(
        self,
        store: Store,
        fetcher: RedditPublicClient,
        scorer: OpportunityScorer,
        subreddit_delay: float = 1.0,
        rate_limit_cooldown: float = 5.0,
        time_budget: float = 50.0,
        global_min_score: int = 40,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the discovery service.

        Args:
            store: Campaign and lead store
            fetcher: Reddit public JSON client
            scorer: Opportunity scorer
            subreddit_delay: Seconds to wait between subreddits
            rate_limit_cooldown: Seconds to wait after a rate-limited subreddit
            time_budget: Seconds after which remaining subreddits are skipped
            global_min_score: Global-pass posts must score above this
            clock: Monotonic clock (injectable for tests)
            sleep: Async sleep (injectable for tests)
        """
        self.store = store
        self.fetcher = fetcher
        self.scorer = scorer
        self.subreddit_delay = subreddit_delay
        self.rate_limit_cooldown = rate_limit_cooldown
        self.time_budget = time_budget
        self.global_min_score = global_min_score
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        store: Store,
        settings: Optional[Settings] = None,
    ) -> "DiscoveryService":
        """Build a service with the configured fetcher and scorer."""
        settings = settings or get_settings()
        return cls(
            store=store,
            fetcher=RedditPublicClient.from_settings(settings),
            scorer=OpportunityScorer(
                backend=get_generative_backend(settings),
                concurrency=settings.discovery_scoring_concurrency,
            ),
            subreddit_delay=settings.discovery_subreddit_delay,
            rate_limit_cooldown=settings.discovery_rate_limit_cooldown,
            time_budget=settings.discovery_time_budget,
            global_min_score=settings.discovery_global_min_score,
        )

    async def close(self) -> None:
        """Close the fetcher and scorer network clients."""
        await self.fetcher.close()
        await self.scorer.backend.close()

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def load_campaign(self, campaign_id: str, owner_id: Optional[str] = None) -> CampaignRecord:
        """Load a campaign the caller may run discovery for.

        Raises:
            CampaignNotFoundError: If missing or owned by someone else
            ConfigurationError: If keywords or subreddits are empty
            StoreUnavailableError: If the store cannot be reached
        """
        campaign = self.store.get_campaign(campaign_id)
        if campaign is None or (owner_id is not None and campaign.owner_id != owner_id):
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")

        if not _clean(campaign.keywords):
            raise ConfigurationError("Campaign has no keywords configured")
        if not [s for s in map(normalize_subreddit, campaign.target_subreddits) if s]:
            raise ConfigurationError("Campaign has no target subreddits configured")

        return campaign

    # =========================================================================
    # RUN
    # =========================================================================

    async def run_discovery(
        self,
        campaign_id: str,
        owner_id: Optional[str] = None,
        mode: str = DiscoveryMode.MANUAL,
    ) -> DiscoveryResult:
        """Run discovery for a campaign.

        Args:
            campaign_id: Campaign to run
            owner_id: Caller's user id; None skips the ownership check
            mode: DiscoveryMode.MANUAL or DiscoveryMode.TARGETED

        Returns:
            DiscoveryResult with the saved count, a message and diagnostics

        Raises:
            ConfigurationError: Invalid mode, missing keywords or subreddits
            CampaignNotFoundError: Unknown campaign
            StoreUnavailableError: The store rejected every lead
        """
        if mode not in VALID_DISCOVERY_MODES:
            raise ConfigurationError(f"Unknown discovery mode: {mode}")

        campaign = self.load_campaign(campaign_id, owner_id)

        keywords = _clean(campaign.keywords)
        negative_keywords = _clean(campaign.negative_keywords)
        blacklist = {normalize_subreddit(s).lower() for s in campaign.subreddit_blacklist}
        subreddits = []
        for name in map(normalize_subreddit, campaign.target_subreddits):
            if name and name.lower() not in {s.lower() for s in subreddits}:
                subreddits.append(name)

        log = logger.bind(campaign_id=campaign.id, mode=mode)
        diagnostics = DiscoveryDiagnostics(
            campaign_id=campaign.id,
            mode=mode,
            proxy=self.fetcher.proxy.status(),
        )
        started = self._clock()

        log.info(
            f"Starting {mode} discovery over {len(subreddits)} subreddits",
            subreddits=subreddits,
        )

        candidates = await self._collect_from_subreddits(
            subreddits, keywords, negative_keywords, blacklist, mode, diagnostics, started, log
        )

        if mode == DiscoveryMode.MANUAL:
            if diagnostics.time_budget_exceeded or self._out_of_time(started, diagnostics):
                log.warning("Time budget exhausted, skipping global pass")
            else:
                global_candidates = await self._global_pass(
                    keywords, negative_keywords, blacklist, candidates, diagnostics, started, log
                )
                candidates.extend(global_candidates)

        self._persist(campaign.id, candidates, diagnostics, log)

        finished_at = datetime.now(timezone.utc)
        try:
            self.store.touch_discovery(campaign.id, mode, finished_at)
        except StoreError as e:
            log.warning(f"Could not update last discovery time: {e}")

        diagnostics.elapsed_seconds = self._clock() - started
        saved = diagnostics.leads_created + diagnostics.leads_updated
        message = self._build_message(saved, diagnostics)

        log.info(
            message,
            saved_count=saved,
            all_blocked=diagnostics.all_blocked,
            posts_examined=diagnostics.posts_examined,
            scoring_degraded=diagnostics.scoring_degraded,
        )
        return DiscoveryResult(saved_count=saved, message=message, diagnostics=diagnostics)

    def _out_of_time(self, started: float, diagnostics: DiscoveryDiagnostics) -> bool:
        if self._clock() - started >= self.time_budget:
            diagnostics.time_budget_exceeded = True
            return True
        return False

    async def _collect_from_subreddits(
        self,
        subreddits: list[str],
        keywords: list[str],
        negative_keywords: list[str],
        blacklist: set[str],
        mode: str,
        diagnostics: DiscoveryDiagnostics,
        started: float,
        log,
    ) -> list[_Candidate]:
        if mode == DiscoveryMode.TARGETED:
            strategies = targeted_strategies(keywords)
        else:
            strategies = default_strategies(self.fetcher.listing_limit)

        primary_keyword = keywords[0]
        candidates: list[_Candidate] = []
        seen: set[str] = set()
        pending_delay = 0.0

        for index, subreddit in enumerate(subreddits):
            if subreddit.lower() in blacklist:
                diagnostics.skipped.append({"subreddit": subreddit, "reason": "blacklisted"})
                continue

            if pending_delay:
                await self._sleep(pending_delay)

            if self._out_of_time(started, diagnostics):
                for remaining in subreddits[index:]:
                    if remaining.lower() not in blacklist:
                        diagnostics.skipped.append(
                            {"subreddit": remaining, "reason": "time_budget"}
                        )
                log.warning(f"Time budget of {self.time_budget}s exhausted at r/{subreddit}")
                break

            diagnostics.subreddits_attempted.append(subreddit)
            result = await self.fetcher.fetch_candidates(subreddit, primary_keyword, strategies)
            diagnostics.attempts.extend(result.attempts)

            if not isinstance(result, FetchSuccess):
                diagnostics.errors.append(
                    SubredditError(
                        subreddit=subreddit,
                        error_message=result.error_message,
                        http_status=result.last_status,
                    )
                )
                if result.blocked:
                    diagnostics.blocked_subreddits.append(subreddit)
                if result.rate_limited:
                    diagnostics.rate_limited_subreddits.append(subreddit)
                    pending_delay = self.rate_limit_cooldown
                else:
                    pending_delay = self.subreddit_delay
                log.warning(f"r/{subreddit} failed: {result.error_message}", subreddit=subreddit)
                continue

            diagnostics.subreddits_succeeded.append(subreddit)
            diagnostics.posts_examined += len(result.posts)

            matched: list[RedditPost] = []
            for post in result.posts:
                if not result.server_filtered and not is_relevant(post.text, keywords):
                    continue
                if matches_negative(post.text, negative_keywords):
                    diagnostics.negative_filtered += 1
                    continue
                if post.external_id in seen:
                    diagnostics.duplicates_skipped += 1
                    continue
                seen.add(post.external_id)
                matched.append(post)

            diagnostics.posts_matched += len(matched)
            scores = await self.scorer.score_many(
                matched, keywords, expired=lambda: self._out_of_time(started, diagnostics)
            )
            for post, score in zip(matched, scores):
                if score.degraded:
                    diagnostics.scoring_degraded += 1
                candidates.append(_Candidate(post=post, score=score))

            log.info(
                f"r/{subreddit}: {len(matched)} of {len(result.posts)} posts matched "
                f"via {result.endpoint}",
                subreddit=subreddit,
            )
            pending_delay = self.subreddit_delay

        return candidates

    async def _global_pass(
        self,
        keywords: list[str],
        negative_keywords: list[str],
        blacklist: set[str],
        existing: list[_Candidate],
        diagnostics: DiscoveryDiagnostics,
        started: float,
        log,
    ) -> list[_Candidate]:
        query = keywords[0]
        summary = GlobalPassSummary(query=query)
        diagnostics.global_pass = summary

        result = await self.fetcher.search_all(query)
        diagnostics.attempts.extend(result.attempts)
        if not isinstance(result, FetchSuccess):
            summary.error = result.error_message
            log.warning(f"Global search failed: {result.error_message}")
            return []

        summary.succeeded = True
        summary.posts_found = len(result.posts)
        seen = {c.post.external_id for c in existing}

        fresh: list[RedditPost] = []
        for post in result.posts:
            if post.external_id in seen:
                summary.duplicates_skipped += 1
                continue
            if normalize_subreddit(post.subreddit).lower() in blacklist or matches_negative(
                post.text, negative_keywords
            ):
                summary.filtered_out += 1
                continue
            seen.add(post.external_id)
            fresh.append(post)

        kept: list[_Candidate] = []
        scores = await self.scorer.score_many(
            fresh, keywords, expired=lambda: self._out_of_time(started, diagnostics)
        )
        for post, score in zip(fresh, scores):
            if score.degraded:
                diagnostics.scoring_degraded += 1
            if score.skipped:
                summary.not_scored += 1
            elif score.score > self.global_min_score:
                kept.append(_Candidate(post=post, score=score))
            else:
                summary.below_threshold += 1

        summary.posts_kept = len(kept)
        diagnostics.posts_examined += summary.posts_found
        diagnostics.posts_matched += len(kept)
        log.info(f"Global search kept {len(kept)} of {summary.posts_found} posts")
        return kept

    def _persist(
        self,
        campaign_id: str,
        candidates: list[_Candidate],
        diagnostics: DiscoveryDiagnostics,
        log,
    ) -> None:
        unavailable = 0
        for candidate in candidates:
            post_id = candidate.post.external_id
            try:
                _, created = self.store.upsert_lead(campaign_id, post_id, _lead_fields(candidate))
            except StoreUnavailableError as e:
                unavailable += 1
                diagnostics.leads_failed += 1
                log.error(f"Store unavailable saving lead {post_id}: {e}")
                continue
            except StoreError as e:
                diagnostics.leads_failed += 1
                log.error(f"Failed to save lead {post_id}: {e}")
                continue

            if created:
                diagnostics.leads_created += 1
            else:
                diagnostics.leads_updated += 1

        if candidates and unavailable == len(candidates):
            raise StoreUnavailableError(
                f"Store unavailable: none of {len(candidates)} leads could be saved"
            )

    @staticmethod
    def _build_message(saved: int, diagnostics: DiscoveryDiagnostics) -> str:
        attempted = len(diagnostics.subreddits_attempted)
        if diagnostics.all_blocked and saved == 0:
            return (
                f"Reddit blocked all requests (HTTP 403) for {attempted} subreddit(s). "
                "The server's IP is likely blocked; enable a proxy to continue discovery."
            )
        if saved == 0:
            if attempted and not diagnostics.subreddits_succeeded:
                return (
                    f"Could not fetch any of {attempted} subreddit(s); "
                    "see diagnostics for details."
                )
            return "Discovery completed but no matching posts were found."
        message = (
            f"{saved} leads saved ({diagnostics.leads_created} new, "
            f"{diagnostics.leads_updated} updated)."
        )
        if diagnostics.all_blocked:
            message += (
                f" Reddit blocked all requests (HTTP 403) for {attempted} subreddit(s); "
                "enable a proxy to search them."
            )
        return message


__all__ = [
    "DiscoveryService",
    "DiscoveryResult",
    "DiscoveryDiagnostics",
    "GlobalPassSummary",
    "SubredditError",
    "normalize_subreddit",
]
