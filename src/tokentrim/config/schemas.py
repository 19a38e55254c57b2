"""
TokenTrim — Configuration Schemas

Typed runtime configuration. Engine thresholds live in OptimizerConfig;
this module wraps them with the process-level settings.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..optimizer.config import OptimizerConfig


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    TEXT = "text"


class TokenTrimConfig(BaseModel):
    """Root configuration for TokenTrim."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Log output format")

    optimizer: OptimizerConfig = Field(default_factory=OptimizerConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
