"""
Optimization Engine

Classifies input as an error log or a conversational prompt, then
condenses or rewrites it to save tokens.
"""

from .classifier import ClassificationResult, TextClassifier
from .condenser import ErrorLogCondenser, LogScanner, ScanState
from .config import OptimizerConfig
from .counter import TokenEstimator, get_token_estimator
from .models import Intent, OptimizationResult
from .optimizer import TokenTrimOptimizer, classify, estimate_tokens, get_optimizer, optimize
from .rewriter import ConversationalRewriter, RewriteResult

__all__ = [
    # Facade
    "TokenTrimOptimizer",
    "get_optimizer",
    "optimize",
    "classify",
    "estimate_tokens",
    # Components
    "TokenEstimator",
    "get_token_estimator",
    "TextClassifier",
    "ConversationalRewriter",
    "ErrorLogCondenser",
    "LogScanner",
    # Models
    "OptimizerConfig",
    "OptimizationResult",
    "ClassificationResult",
    "RewriteResult",
    "Intent",
    "ScanState",
]
