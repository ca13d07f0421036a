"""Configuration module."""

from gemini_vision.config.loader import load_settings, validate_environment
from gemini_vision.config.models import (
    AVAILABLE_GEMINI_MODELS,
    DEFAULT_CLI_TOOL,
    DEFAULT_CONFIDENCE_SCORE,
    DEFAULT_MODEL_CONFIG,
    SUPPORTED_IMAGE_FORMATS,
    CliConfig,
    ConfigError,
    ModelConfig,
    PerformanceConfig,
    Settings,
)
from gemini_vision.config.paths import get_config_path, get_home, get_logs_path

__all__ = [
    "AVAILABLE_GEMINI_MODELS",
    "DEFAULT_CLI_TOOL",
    "DEFAULT_CONFIDENCE_SCORE",
    "DEFAULT_MODEL_CONFIG",
    "SUPPORTED_IMAGE_FORMATS",
    "CliConfig",
    "ConfigError",
    "ModelConfig",
    "PerformanceConfig",
    "Settings",
    "get_config_path",
    "get_home",
    "get_logs_path",
    "load_settings",
    "validate_environment",
]
