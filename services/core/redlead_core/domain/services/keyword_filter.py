"""Keyword relevance filter.

Decides whether a post is a discovery candidate for a campaign's
keywords. A keyword matches when it occurs verbatim in the text, or, for
multi-word keywords, when every token longer than two characters occurs
somewhere in the text in any order. "jobs in Japan" therefore matches
"Japan jobs for foreigners".

Usage:
    is_relevant("Looking for jobs in Japan", ["Japan Jobs"])  # True
    matches_negative("Free giveaway inside", ["giveaway"])    # True
"""

from typing import Iterable

# Tokens this short ("in", "a", "of") are ignored by the token-subset rule
MIN_TOKEN_LENGTH = 3


def _keyword_matches(text: str, keyword: str) -> bool:
    keyword = keyword.strip().lower()
    if not keyword:
        return False

    if keyword in text:
        return True

    words = keyword.split()
    if len(words) < 2:
        return False

    tokens = [w for w in words if len(w) >= MIN_TOKEN_LENGTH]
    if not tokens:
        return False

    return all(token in text for token in tokens)


def is_relevant(text: str, keywords: Iterable[str]) -> bool:
    """Check whether any keyword matches the text.

    Args:
        text: Post title and body
        keywords: Keyword phrases

    Returns:
        True if at least one keyword matches
    """
    lowered = (text or "").lower()
    return any(_keyword_matches(lowered, k) for k in keywords if k)


def matches_negative(text: str, negative_keywords: Iterable[str]) -> bool:
    """Check whether the text contains any negative keyword (plain substring)."""
    lowered = (text or "").lower()
    for keyword in negative_keywords:
        keyword = (keyword or "").strip().lower()
        if keyword and keyword in lowered:
            return True
    return False


__all__ = ["is_relevant", "matches_negative", "MIN_TOKEN_LENGTH"]
