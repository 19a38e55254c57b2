"""
TokenTrim — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config
from .schemas import Environment, LogFormat, LogLevel, TokenTrimConfig

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    # Main config
    "TokenTrimConfig",
    # Enums
    "Environment",
    "LogLevel",
    "LogFormat",
]
