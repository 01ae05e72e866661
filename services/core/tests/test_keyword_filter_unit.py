"""Unit tests for the keyword relevance filter."""

import pytest

from redlead_core.domain.services.keyword_filter import is_relevant, matches_negative


class TestIsRelevant:
    """Tests for is_relevant."""

    def test_substring_match_is_case_insensitive(self):
        """A keyword occurring verbatim matches regardless of case."""
        assert is_relevant("Which CRM do you use for a tiny team?", ["crm"])

    def test_multi_word_keyword_matches_tokens_in_any_order(self):
        """Every significant token of a phrase may appear anywhere."""
        assert is_relevant("Japan jobs for foreigners", ["jobs in Japan"])

    def test_short_tokens_are_ignored(self):
        """Tokens shorter than three characters do not need to appear."""
        assert is_relevant("hiring remote python developers", ["a remote python job"]) is False
        assert is_relevant("remote python work", ["a remote python"])

    def test_missing_token_does_not_match(self):
        """All significant tokens must be present."""
        assert is_relevant("Looking for jobs in Korea", ["jobs in Japan"]) is False

    def test_single_word_requires_substring(self):
        """Single-word keywords only match as substrings."""
        assert is_relevant("invoicing software", ["billing"]) is False

    def test_phrase_of_only_short_tokens_never_matches_by_tokens(self):
        """A phrase whose tokens are all too short matches only verbatim."""
        assert is_relevant("go to it", ["to go"]) is False
        assert is_relevant("we want to go now", ["to go"])

    def test_any_keyword_is_enough(self):
        """One matching keyword out of many is sufficient."""
        assert is_relevant("best invoicing tool?", ["crm", "invoicing"])

    @pytest.mark.parametrize("keywords", [[], ["", "   "]])
    def test_no_usable_keywords(self, keywords):
        """Blank keyword lists never match."""
        assert is_relevant("anything at all", keywords) is False

    def test_empty_text(self):
        """Empty text never matches."""
        assert is_relevant("", ["crm"]) is False


class TestMatchesNegative:
    """Tests for matches_negative."""

    def test_plain_substring(self):
        """Negative keywords match as case-insensitive substrings."""
        assert matches_negative("FREE Giveaway inside", ["giveaway"])

    def test_no_match(self):
        """Text without any negative keyword passes."""
        assert matches_negative("Need a CRM", ["giveaway", "hiring"]) is False

    def test_blank_negative_keywords_are_ignored(self):
        """Blank entries never exclude a post."""
        assert matches_negative("Need a CRM", ["", "  "]) is False
