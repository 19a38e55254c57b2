"""
TokenTrim Optimizer

Single entry point of the engine:
- Error/log dumps are condensed to their distinct errors
- Conversational prompts are rewritten into a structured request
- A rewrite that does not shrink the text enough is discarded

Every call is a pure function of its input and the (immutable) config.
"""

import logging
import math
from typing import Any

from ..errors import ValidationError
from .classifier import ClassificationResult, TextClassifier
from .condenser import ErrorLogCondenser
from .config import OptimizerConfig
from .counter import TokenEstimator
from .models import Intent, OptimizationResult
from .rewriter import ConversationalRewriter

logger = logging.getLogger(__name__)

# Savings at or above this use the steeper output-savings ratio
HIGH_SAVINGS_PERCENT = 50
HIGH_OUTPUT_SAVINGS_RATIO = 0.5
LOW_OUTPUT_SAVINGS_RATIO = 0.3


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


def calculate_savings_percent(original_tokens: int, optimized_tokens: int) -> int:
    """
    Percentage of tokens saved, clamped to [0, 100].

    Args:
        original_tokens: Tokens of the input
        optimized_tokens: Tokens of the output

    Returns:
        Whole-number savings percentage
    """
    if original_tokens <= 0:
        return 0
    percent = round_half_up((1 - optimized_tokens / original_tokens) * 100)
    return max(0, min(100, percent))


def estimate_output_savings(savings_percent: int) -> int:
    """Expected reduction of the model reply, derived from prompt savings."""
    ratio = HIGH_OUTPUT_SAVINGS_RATIO if savings_percent >= HIGH_SAVINGS_PERCENT else LOW_OUTPUT_SAVINGS_RATIO
    return round_half_up(savings_percent * ratio)


class TokenTrimOptimizer:
    """
    Prompt and log optimizer.

    Shares its classifier, rewriter and condenser between calls; none of
    them keep per-call state.
    """

    def __init__(self, config: OptimizerConfig | None = None) -> None:
        """
        Initialize optimizer.

        Args:
            config: Engine thresholds (defaults if None)
        """
        self.config = config or OptimizerConfig()
        self.estimator = TokenEstimator()
        self.classifier = TextClassifier(threshold=self.config.classifier_threshold)
        self.rewriter = ConversationalRewriter(self.config)
        self.condenser = ErrorLogCondenser(self.config)

    def estimate_tokens(self, text: str) -> int:
        """Estimate tokens of text."""
        self._validate(text)
        return self.estimator.estimate_tokens(text)

    def classify(self, text: str) -> ClassificationResult:
        """Classify text as error log or conversational prompt."""
        self._validate(text)
        return self.classifier.classify(text.strip())

    def optimize(self, text: str) -> OptimizationResult:
        """
        Optimize a prompt or an error log.

        Args:
            text: Input text

        Returns:
            OptimizationResult; optimized equals the input whenever the
            transformation did not reduce its length meaningfully

        Raises:
            ValidationError: If text is not a string
        """
        self._validate(text)

        if not text.strip():
            return OptimizationResult(
                original=text,
                optimized=text,
                original_tokens=0,
                optimized_tokens=0,
                savings_percent=0,
                intent=Intent.GENERAL,
            )

        stripped = text.strip()
        is_error_log = self.classifier.is_error_log(stripped)

        if is_error_log:
            candidate = self.condenser.condense(stripped)
            intent = Intent.DEBUG
        else:
            rewrite = self.rewriter.rewrite(stripped)
            candidate = rewrite.text if rewrite else ""
            intent = rewrite.intent if rewrite else self.rewriter.detect_intent(stripped)

        optimized = self._apply_guardrail(text, candidate)
        original_tokens = self.estimator.estimate_tokens(text)
        optimized_tokens = self.estimator.estimate_tokens(optimized)

        if optimized == text:
            savings_percent = 0
        else:
            savings_percent = calculate_savings_percent(original_tokens, optimized_tokens)

        result = OptimizationResult(
            original=text,
            optimized=optimized,
            original_tokens=original_tokens,
            optimized_tokens=optimized_tokens,
            savings_percent=savings_percent,
            estimated_output_savings=estimate_output_savings(savings_percent),
            intent=intent,
            is_error_log=is_error_log,
        )

        logger.debug(
            f"Optimized {'error log' if is_error_log else 'prompt'}: "
            f"{original_tokens} -> {optimized_tokens} tokens ({savings_percent}% saved)",
            extra={
                "mode": "log" if is_error_log else "prompt",
                "intent": intent.value,
                "original_tokens": original_tokens,
                "optimized_tokens": optimized_tokens,
                "savings_percent": savings_percent,
            },
        )
        return result

    def _apply_guardrail(self, original: str, candidate: str) -> str:
        """Return candidate only if it is meaningfully shorter than original."""
        if not candidate.strip():
            return original
        if len(candidate) >= len(original) * (1 - self.config.min_savings_ratio):
            return original
        return candidate

    @staticmethod
    def _validate(text: Any) -> None:
        if not isinstance(text, str):
            raise ValidationError("text", text)


# Singleton instance
_optimizer_instance: TokenTrimOptimizer | None = None


def get_optimizer(config: OptimizerConfig | None = None) -> TokenTrimOptimizer:
    """
    Get shared TokenTrimOptimizer instance.

    Args:
        config: Engine thresholds; replaces the shared instance when given.
            The first call without a config uses the thresholds from
            get_config(), so TOKENTRIM_* overrides reach the engine.

    Returns:
        Shared TokenTrimOptimizer instance
    """
    global _optimizer_instance
    if config is not None:
        _optimizer_instance = TokenTrimOptimizer(config)
    elif _optimizer_instance is None:
        from ..config import get_config

        _optimizer_instance = TokenTrimOptimizer(get_config().optimizer)
    return _optimizer_instance


def optimize(text: str) -> OptimizationResult:
    """Convenience function to optimize text with the shared optimizer."""
    return get_optimizer().optimize(text)


def classify(text: str) -> ClassificationResult:
    """Convenience function to classify text with the shared optimizer."""
    return get_optimizer().classify(text)


def estimate_tokens(text: str) -> int:
    """Convenience function to estimate tokens with the shared optimizer."""
    return get_optimizer().estimate_tokens(text)
