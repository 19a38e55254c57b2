"""
Optimization Models

Data models shared by the rewriter, the log condenser and the facade.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Intent(str, Enum):
    """
    Intent tag attached to an optimization result.

    Conversational prompts resolve to FIX, EXPLAIN, IMPLEMENT, OPTIMIZE or
    GENERAL. Error logs always resolve to DEBUG. CREATE is part of the
    vocabulary shared with the editor extension and is never produced by
    the engine.
    """

    FIX = "fix"
    DEBUG = "debug"
    EXPLAIN = "explain"
    IMPLEMENT = "implement"
    OPTIMIZE = "optimize"
    GENERAL = "general"
    CREATE = "create"


class OptimizationResult(BaseModel):
    """Result of optimizing one text blob."""

    # Content
    original: str = Field(..., description="Input text, exactly as given")
    optimized: str = Field(..., description="Optimized text, or the input when nothing was gained")

    # Token metrics
    original_tokens: int = Field(..., ge=0, description="Estimated tokens of the input")
    optimized_tokens: int = Field(..., ge=0, description="Estimated tokens of the output")
    savings_percent: int = Field(..., ge=0, le=100, description="Percentage of tokens saved")
    estimated_output_savings: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Expected percentage reduction of the model reply",
    )

    # Classification
    intent: Intent = Field(..., description="Detected intent")
    is_error_log: bool = Field(default=False, description="Whether the log condenser handled the input")

    model_config = ConfigDict(frozen=True)

    @property
    def tokens_saved(self) -> int:
        """Calculate tokens saved."""
        return max(0, self.original_tokens - self.optimized_tokens)

    @property
    def changed(self) -> bool:
        """Whether the optimized text differs from the input."""
        return self.optimized != self.original

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "original": self.original,
            "optimized": self.optimized,
            "original_tokens": self.original_tokens,
            "optimized_tokens": self.optimized_tokens,
            "tokens_saved": self.tokens_saved,
            "savings_percent": self.savings_percent,
            "estimated_output_savings": self.estimated_output_savings,
            "intent": self.intent.value,
            "is_error_log": self.is_error_log,
        }
