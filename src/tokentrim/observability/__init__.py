"""
TokenTrim — Observability Module

Structured logging for the engine. All modules log through the standard
library logger hierarchy under "tokentrim"; the hosting application calls
setup_logging() once to choose level and output format.

Usage:
    from tokentrim.observability import configure_logging, setup_logging

    setup_logging(level="DEBUG", fmt="json")

    # or apply TOKENTRIM_LOG_LEVEL / TOKENTRIM_LOG_FORMAT
    configure_logging()
"""

from .logging import JSONFormatter, configure_logging, setup_logging

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "setup_logging",
]
