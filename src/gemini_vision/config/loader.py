"""Configuration loading from TOML files and environment variables."""

import logging
import os
import tomllib
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from gemini_vision.config.models import AVAILABLE_GEMINI_MODELS, Settings
from gemini_vision.config.paths import CONFIG_FILENAME, get_config_path

logger = logging.getLogger(__name__)

ENV_GEMINI_MODEL = "GEMINI_MODEL"
ENV_GEMINI_TEMPERATURE = "GEMINI_TEMPERATURE"
ENV_GEMINI_MAX_TOKENS = "GEMINI_MAX_TOKENS"
ENV_GEMINI_LANGUAGE = "GEMINI_LANGUAGE"
ENV_MAX_IMAGE_SIZE = "MAX_IMAGE_SIZE"
ENV_ANALYSIS_TIMEOUT = "ANALYSIS_TIMEOUT"
ENV_MAX_CONCURRENT_REQUESTS = "MAX_CONCURRENT_REQUESTS"
ENV_CLI_LAUNCHER = "GEMINI_CLI_LAUNCHER"

_LANGUAGES = ("ja", "en", "auto")


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path(CONFIG_FILENAME),  # Current directory
        get_config_path(),  # ~/.gemini-vision/config.toml (or GEMINI_VISION_HOME)
    ]


def _env_number(key: str) -> float | None:
    value = os.environ.get(key)
    if value is None or value.strip() == "":
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(
            "config_env_invalid_number",
            extra={"env.key": key, "env.value": value},
        )
        return None


def _env_int(key: str) -> int | None:
    number = _env_number(key)
    if number is None:
        return None
    if not number.is_integer():
        logger.warning(
            "config_env_invalid_integer",
            extra={"env.key": key, "env.value": os.environ.get(key)},
        )
        return None
    return int(number)


def _env_choice(key: str, allowed: Sequence[str]) -> str | None:
    value = os.environ.get(key)
    if value is None or value.strip() == "":
        return None
    if value in allowed:
        return value
    logger.warning(
        "config_env_invalid_choice",
        extra={"env.key": key, "env.value": value, "env.allowed": list(allowed)},
    )
    return None


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Overlay environment variables onto the raw config mapping."""
    overrides: list[tuple[str, str, Any]] = [
        ("gemini", "model", _env_choice(ENV_GEMINI_MODEL, AVAILABLE_GEMINI_MODELS)),
        ("gemini", "temperature", _env_number(ENV_GEMINI_TEMPERATURE)),
        ("gemini", "max_output_tokens", _env_int(ENV_GEMINI_MAX_TOKENS)),
        ("gemini", "language", _env_choice(ENV_GEMINI_LANGUAGE, _LANGUAGES)),
        ("performance", "max_image_size_mb", _env_number(ENV_MAX_IMAGE_SIZE)),
        ("performance", "analysis_timeout", _env_number(ENV_ANALYSIS_TIMEOUT)),
        (
            "performance",
            "max_concurrent_requests",
            _env_int(ENV_MAX_CONCURRENT_REQUESTS),
        ),
        ("cli", "launcher", os.environ.get(ENV_CLI_LAUNCHER) or None),
    ]
    for section, key, value in overrides:
        if value is None:
            continue
        config.setdefault(section, {})[key] = value
    return config


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from an optional TOML file plus environment overrides.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to defaults when none exists.

    Returns:
        Validated Settings instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ValueError: If the file or the resulting settings are invalid.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        with config_path.open("rb") as f:
            raw_config = tomllib.load(f)
        logger.debug("config_file_loaded", extra={"config.path": str(config_path)})

    raw_config = _apply_env_overrides(raw_config)

    return Settings.model_validate(raw_config)


def validate_environment() -> list[str]:
    """Report environment values that would produce invalid settings."""
    errors: list[str] = []

    temperature = _env_number(ENV_GEMINI_TEMPERATURE)
    if temperature is not None and not 0 <= temperature <= 1:
        errors.append(
            f"{ENV_GEMINI_TEMPERATURE} must be between 0 and 1, got: {temperature}"
        )

    positive_keys = (
        ENV_GEMINI_MAX_TOKENS,
        ENV_MAX_IMAGE_SIZE,
        ENV_ANALYSIS_TIMEOUT,
        ENV_MAX_CONCURRENT_REQUESTS,
    )
    for key in positive_keys:
        value = _env_number(key)
        if value is not None and value <= 0:
            errors.append(f"{key} must be positive, got: {value}")

    return errors
