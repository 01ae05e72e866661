"""Opportunity scorer for discovered posts.

Asks a generative backend to rate how likely a post is to turn into a
customer for the campaign (0-100) and to classify the author's intent.
The scorer never raises: backend outages and unparseable answers degrade
to a neutral score of 50 with intent ``unclassified``.

Usage:
    scorer = OpportunityScorer(backend=get_generative_backend())

    result = await scorer.score(post.title, post.body_text, ["crm"])
    print(result.score, result.intent, result.degraded)

    results = await scorer.score_many(posts, ["crm"])
"""

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

from redlead_core.domain.models import LeadIntent
from redlead_core.domain.services.inference import GenerativeBackend
from redlead_core.providers.base import RedditPost

logger = logging.getLogger(__name__)


DEFAULT_SCORE = 50
BODY_CHAR_LIMIT = 1000
SCORING_MAX_TOKENS = 800
DEFAULT_SCORING_CONCURRENCY = 4

CANONICAL_INTENTS = {
    intent.lower(): intent
    for intent in (
        LeadIntent.BUYING,
        LeadIntent.SEEKING_ADVICE,
        LeadIntent.DISCUSSING,
        LeadIntent.SELLING,
        LeadIntent.UNRELATED,
    )
}

# Column width of Lead.intent
MAX_INTENT_LENGTH = 50


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class OpportunityScore:
    """Score and intent for one post.

    Attributes:
        score: Opportunity score 0-100
        intent: Intent classification
        reason: Short explanation from the model, if any
        degraded: True when the default was used because scoring failed
        skipped: True when the post was never sent to the backend
    """

    score: int
    intent: str
    reason: Optional[str] = None
    degraded: bool = False
    skipped: bool = False

    @classmethod
    def default(cls, reason: str) -> "OpportunityScore":
        """Neutral result used whenever scoring fails."""
        return cls(
            score=DEFAULT_SCORE,
            intent=LeadIntent.UNCLASSIFIED,
            reason=reason,
            degraded=True,
        )


@dataclass
class ParsedScore:
    """Model output that passed validation."""

    score: int
    intent: str
    reason: Optional[str] = None


@dataclass
class Unparsed:
    """Model output that could not be turned into a score."""

    error: str


ParseResult = Union[ParsedScore, Unparsed]


# =============================================================================
# PROMPT
# =============================================================================


OPPORTUNITY_SYSTEM_PROMPT = """You are an expert sales lead analyzer.
Your task is to analyze a Reddit post and return a JSON object with a score (0-100) and an intent classification.

Keywords: {keywords}

Scoring Criteria:
- 90-100: High intent. Explicitly asking for the product/service or describing the exact problem it solves. "I need...", "Looking for..."
- 70-89: Moderate intent. Relevant topic, asking questions, seeking advice.
- 40-69: Loose relevance. Mentions keywords but in a general discussion.
- 0-39: Irrelevant, spam, or totally different context.

Intent Categories:
- "Buying": Wants to purchase or find a solution.
- "Seeking Advice": Asking for help/information related to the problem.
- "Discussing": General conversation, sharing opinion.
- "Selling": Promoting their own stuff (competitor or irrelevant).
- "Unrelated": Not relevant.

Return ONLY a JSON object: {{"score": number, "intent": "string", "reason": "short explanation"}}"""


def build_prompts(title: str, body: str, keywords: Sequence[str]) -> tuple[str, str]:
    """Build the system and user prompts for one post."""
    system_prompt = OPPORTUNITY_SYSTEM_PROMPT.format(keywords=", ".join(keywords))
    user_prompt = f"Title: {title}\n\nBody: {(body or '')[:BODY_CHAR_LIMIT]}"
    return system_prompt, user_prompt


# =============================================================================
# PARSING
# =============================================================================


def _first_balanced_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` substring, honoring JSON strings."""
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def _validate(data: Any) -> ParseResult:
    if not isinstance(data, dict):
        return Unparsed("Response is not a JSON object")

    score = data.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return Unparsed(f"score is not a number: {score!r}")
    if not math.isfinite(score):
        return Unparsed(f"score is not finite: {score!r}")

    intent = data.get("intent")
    if not isinstance(intent, str) or not intent.strip():
        return Unparsed(f"intent is not a string: {intent!r}")

    intent = intent.strip()
    intent = CANONICAL_INTENTS.get(intent.lower(), intent)[:MAX_INTENT_LENGTH]

    reason = data.get("reason")
    return ParsedScore(
        score=max(0, min(100, round(score))),
        intent=intent,
        reason=reason if isinstance(reason, str) else None,
    )


def parse_score_response(text: Optional[str]) -> ParseResult:
    """Parse a model response into a score.

    Tries a strict JSON parse of the whole response first, then the first
    balanced ``{...}`` substring (models often wrap JSON in prose or code
    fences).
    """
    if not text or not text.strip():
        return Unparsed("Empty response")

    try:
        return _validate(json.loads(text))
    except json.JSONDecodeError:
        pass

    candidate = _first_balanced_object(text)
    if candidate is None:
        return Unparsed("No JSON object found in response")

    try:
        return _validate(json.loads(candidate))
    except json.JSONDecodeError as e:
        return Unparsed(f"Invalid JSON in response: {e}")


# =============================================================================
# SCORER
# =============================================================================


class OpportunityScorer:
    """Scores posts through a generative backend."""

    def __init__(
        self,
        backend: GenerativeBackend,
        concurrency: int = DEFAULT_SCORING_CONCURRENCY,
        max_tokens: int = SCORING_MAX_TOKENS,
    ):
        """Initialize the scorer.

        Args:
            backend: Generative backend (normally a fallback chain)
            concurrency: Maximum in-flight backend calls for score_many
            max_tokens: Token limit for each completion
        """
        self.backend = backend
        self.concurrency = max(1, concurrency)
        self.max_tokens = max_tokens

    async def score(self, title: str, body: str, keywords: Sequence[str]) -> OpportunityScore:
        """Score one post. Never raises."""
        system_prompt, user_prompt = build_prompts(title, body, keywords)

        try:
            text = await self.backend.complete(
                system_prompt,
                user_prompt,
                max_tokens=self.max_tokens,
                json_mode=True,
            )
        except Exception as e:
            logger.error(f"Scoring backend failed: {e}", exc_info=True)
            return OpportunityScore.default(f"Backend error: {e}")

        if text is None:
            logger.warning("Scoring backend returned no completion")
            return OpportunityScore.default("No completion")

        parsed = parse_score_response(text)
        if isinstance(parsed, Unparsed):
            logger.warning(f"Could not parse score: {parsed.error}")
            return OpportunityScore.default(parsed.error)

        return OpportunityScore(
            score=parsed.score,
            intent=parsed.intent,
            reason=parsed.reason,
        )

    async def score_many(
        self,
        posts: Sequence[RedditPost],
        keywords: Sequence[str],
        expired: Optional[Callable[[], bool]] = None,
    ) -> list[OpportunityScore]:
        """Score posts with bounded concurrency, preserving order.

        Once ``expired`` returns True no further backend calls are started;
        the remaining posts get the neutral default marked as skipped.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(post: RedditPost) -> OpportunityScore:
            async with semaphore:
                if expired is not None and expired():
                    result = OpportunityScore.default("Time budget exhausted")
                    result.skipped = True
                    return result
                return await self.score(post.title, post.body_text, keywords)

        return list(await asyncio.gather(*(bounded(p) for p in posts)))


__all__ = [
    "OpportunityScore",
    "OpportunityScorer",
    "ParsedScore",
    "Unparsed",
    "ParseResult",
    "parse_score_response",
    "build_prompts",
    "OPPORTUNITY_SYSTEM_PROMPT",
    "DEFAULT_SCORE",
    "BODY_CHAR_LIMIT",
]
