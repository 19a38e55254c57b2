"""
TokenTrim - Core Error Types

Defines the exception hierarchy for the TokenTrim engine.
All exceptions inherit from TokenTrimError for consistent error handling.

The optimization engine itself never raises for string input: an
unproductive or degenerate transformation falls back to the original
text. These errors cover misuse of the public API (non-string input)
and invalid runtime configuration.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes for structured error payloads.

    Used by hosting layers to map engine errors onto their responses.
    """

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TokenTrimError(Exception):
    """Base exception for all TokenTrim errors."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(TokenTrimError):
    """Raised when configuration is invalid or missing."""

    error_code = ErrorCode.INVALID_CONFIGURATION


class ValidationError(TokenTrimError):
    """Raised when input to the public API has the wrong type."""

    error_code = ErrorCode.INVALID_INPUT

    def __init__(self, parameter: str, value: Any):
        message = f"Parameter '{parameter}' must be a string, got {type(value).__name__}"
        super().__init__(message, {"parameter": parameter, "type": type(value).__name__})

