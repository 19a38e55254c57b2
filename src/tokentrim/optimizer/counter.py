"""
Token Estimator Module

Approximates token counts with a characters-per-token heuristic.

The heuristic is part of the engine's contract: reported savings are
only comparable between implementations when they divide by exactly the
same ratios and round the same way, so no real tokenizer is used here.
"""

import math
import re
from typing import Any

# Characters per token for prose and for text containing code
CHARS_PER_TOKEN_TEXT = 4.0
CHARS_PER_TOKEN_CODE = 3.5

_CODE_MARKER = re.compile(r"```|`[^`]+`")


class TokenEstimator:
    """
    Heuristic token estimator.

    Text containing a fenced block marker or an inline backtick span is
    treated as code, which tokenizes denser than prose.
    """

    def has_code(self, content: str) -> bool:
        """Return True if content contains a code fence or inline code span."""
        return _CODE_MARKER.search(content) is not None

    def estimate_tokens(self, content: str) -> int:
        """
        Estimate the token count of content.

        Args:
            content: Text to estimate

        Returns:
            ceil(len / 3.5) for code, ceil(len / 4) otherwise; 0 for
            empty or whitespace-only text
        """
        if not content or not content.strip():
            return 0

        divisor = CHARS_PER_TOKEN_CODE if self.has_code(content) else CHARS_PER_TOKEN_TEXT
        return math.ceil(len(content) / divisor)

    def get_token_breakdown(self, content: str) -> dict[str, Any]:
        """
        Get token estimate with metadata.

        Args:
            content: Text content

        Returns:
            Dictionary with token count and metadata
        """
        token_count = self.estimate_tokens(content)

        return {
            "token_count": token_count,
            "character_count": len(content),
            "has_code": self.has_code(content),
            "chars_per_token": len(content) / token_count if token_count > 0 else 0,
            "method": "estimated",
        }


# Singleton instance
_estimator_instance: TokenEstimator | None = None


def get_token_estimator() -> TokenEstimator:
    """
    Get singleton TokenEstimator instance.

    Returns:
        Shared TokenEstimator instance
    """
    global _estimator_instance
    if _estimator_instance is None:
        _estimator_instance = TokenEstimator()
    return _estimator_instance


def estimate_tokens(content: str) -> int:
    """
    Convenience function to estimate tokens.

    Args:
        content: Text content

    Returns:
        Estimated token count
    """
    return get_token_estimator().estimate_tokens(content)
