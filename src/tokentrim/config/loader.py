"""
TokenTrim — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import TokenTrimConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "TOKENTRIM_"

# Engine threshold fields and the converter applied to their env values
_OPTIMIZER_FIELDS: dict[str, type] = {
    "min_savings_ratio": float,
    "classifier_threshold": int,
    "dedup_min_line_length": int,
    "stack_frame_cap": int,
    "max_context_lines": int,
    "min_context_line_length": int,
    "requirement_min_length": int,
    "requirement_max_length": int,
    "constraint_min_length": int,
    "constraint_max_length": int,
}

_config_instance: TokenTrimConfig | None = None


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _optimizer_overrides() -> dict[str, Any]:
    """Collect engine thresholds set through TOKENTRIM_<FIELD> variables."""
    overrides: dict[str, Any] = {}
    for field_name, convert in _OPTIMIZER_FIELDS.items():
        raw = _env(field_name.upper())
        if raw is None or not raw.strip():
            continue
        try:
            overrides[field_name] = convert(raw.strip())
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {ENV_PREFIX}{field_name.upper()}: {raw!r}",
                details={"variable": f"{ENV_PREFIX}{field_name.upper()}", "value": raw},
            ) from e
    return overrides


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> TokenTrimConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated TokenTrimConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    env_path = Path(env_file) if env_file else Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    config_dict = {
        "environment": (_env("ENVIRONMENT") or "development").lower(),
        "log_level": (_env("LOG_LEVEL") or "INFO").upper(),
        "log_format": (_env("LOG_FORMAT") or "json").lower(),
        "optimizer": _optimizer_overrides(),
    }

    try:
        _config_instance = TokenTrimConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={"environment": _config_instance.environment, "log_format": _config_instance.log_format},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your TOKENTRIM_* environment variables.",
            details={"validation_errors": e.errors(include_url=False)},
        ) from e


def get_config() -> TokenTrimConfig:
    """
    Get the current configuration instance.

    Returns:
        Current TokenTrimConfig instance, loading it on first access
    """
    if _config_instance is None:
        return load_config()
    return _config_instance


def reload_config(env_file: str | None = None) -> TokenTrimConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded TokenTrimConfig instance
    """
    config = load_config(env_file=env_file, reload=True)

    # Shared optimizer picks up the new thresholds on next access
    from ..optimizer import optimizer as optimizer_module

    optimizer_module._optimizer_instance = None
    return config
