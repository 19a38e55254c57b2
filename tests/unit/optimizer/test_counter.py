"""
Unit Tests for Token Estimator

Tests the characters-per-token heuristic and its code detection.
"""

import pytest

from tokentrim.optimizer.counter import (
    CHARS_PER_TOKEN_CODE,
    CHARS_PER_TOKEN_TEXT,
    TokenEstimator,
    estimate_tokens,
    get_token_estimator,
)


class TestTokenEstimator:
    """Tests for TokenEstimator class."""

    @pytest.fixture
    def estimator(self):
        """Create a TokenEstimator instance."""
        return TokenEstimator()

    def test_empty_string(self, estimator):
        """Empty text has no tokens."""
        assert estimator.estimate_tokens("") == 0

    def test_whitespace_only(self, estimator):
        """Whitespace-only text has no tokens."""
        assert estimator.estimate_tokens("   \n\t  ") == 0

    def test_plain_text_divides_by_four(self, estimator):
        """Prose uses four characters per token."""
        assert estimator.estimate_tokens("a" * 400) == 100

    def test_plain_text_rounds_up(self, estimator):
        """Partial tokens count as a whole token."""
        assert estimator.estimate_tokens("abcde") == 2
        assert estimator.estimate_tokens("a") == 1

    def test_fenced_code_uses_code_ratio(self, estimator):
        """A fence marker switches to 3.5 characters per token."""
        text = "```\n" + "x" * 62 + "\n```"
        assert len(text) == 70
        assert estimator.estimate_tokens(text) == 20

    def test_inline_code_uses_code_ratio(self, estimator):
        """An inline backtick span also counts as code."""
        assert estimator.estimate_tokens("use `x`") == 2

    def test_unpaired_backtick_is_not_code(self, estimator):
        """A lone backtick is ordinary text."""
        assert not estimator.has_code("it`s fine")
        assert estimator.estimate_tokens("it`s fine") == 3

    def test_ratios(self):
        """Ratios are fixed."""
        assert CHARS_PER_TOKEN_TEXT == 4.0
        assert CHARS_PER_TOKEN_CODE == 3.5

    def test_token_breakdown(self, estimator):
        """Breakdown reports count, length and code detection."""
        breakdown = estimator.get_token_breakdown("a" * 40)

        assert breakdown["token_count"] == 10
        assert breakdown["character_count"] == 40
        assert breakdown["has_code"] is False
        assert breakdown["chars_per_token"] == 4.0
        assert breakdown["method"] == "estimated"

    def test_token_breakdown_empty(self, estimator):
        """Breakdown of empty text avoids dividing by zero."""
        breakdown = estimator.get_token_breakdown("")

        assert breakdown["token_count"] == 0
        assert breakdown["chars_per_token"] == 0


class TestConvenienceFunctions:
    """Tests for module-level helpers."""

    def test_get_token_estimator_singleton(self):
        """Test that get_token_estimator returns singleton."""
        assert get_token_estimator() is get_token_estimator()

    def test_estimate_tokens(self):
        """Test estimate_tokens convenience function."""
        assert estimate_tokens("a" * 8) == 2
