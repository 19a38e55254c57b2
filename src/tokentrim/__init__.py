"""
TokenTrim — Prompt and Log Optimization Engine

Shrinks developer prompts and pasted error logs before they reach an
LLM, and reports the estimated token savings.
"""

__version__ = "1.0.0"

from .errors import ConfigurationError, TokenTrimError, ValidationError
from .optimizer import (
    ClassificationResult,
    Intent,
    OptimizationResult,
    OptimizerConfig,
    TokenTrimOptimizer,
    classify,
    estimate_tokens,
    get_optimizer,
    optimize,
)

__all__ = [
    "__version__",
    # Engine
    "optimize",
    "classify",
    "estimate_tokens",
    "get_optimizer",
    "TokenTrimOptimizer",
    "OptimizerConfig",
    # Models
    "OptimizationResult",
    "ClassificationResult",
    "Intent",
    # Errors
    "TokenTrimError",
    "ConfigurationError",
    "ValidationError",
]
