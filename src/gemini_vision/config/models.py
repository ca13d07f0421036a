"""Configuration models using Pydantic."""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 2048
DEFAULT_CLI_TOOL = "@google-ai/generative-ai-cli"
DEFAULT_CONFIDENCE_SCORE = 0.8

AVAILABLE_GEMINI_MODELS: tuple[str, ...] = (
    "gemini-1.5-pro",
    "gemini-1.5-flash",
    "gemini-2.0-flash-exp",
    "gemini-2.5-pro",
)

SUPPORTED_IMAGE_FORMATS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".webp", ".gif")


class ConfigError(Exception):
    """Configuration error."""

    pass


class ModelConfig(BaseModel):
    """Settings passed to the Gemini CLI.

    Instances are immutable; use ``merged()`` to derive an updated copy.
    """

    model_config = ConfigDict(frozen=True)

    model: str = DEFAULT_MODEL
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=1.0)
    max_output_tokens: int = Field(default=DEFAULT_MAX_OUTPUT_TOKENS, gt=0)
    language: Literal["ja", "en", "auto"] = "ja"

    def merged(self, changes: Mapping[str, Any] | None = None) -> "ModelConfig":
        """Return a validated copy with ``changes`` applied.

        Keys that are missing or set to None keep their current value.
        """
        updates = {k: v for k, v in (changes or {}).items() if v is not None}
        if not updates:
            return self
        unknown = set(updates) - set(type(self).model_fields)
        if unknown:
            raise ConfigError(
                f"Unknown model setting(s): {', '.join(sorted(unknown))}"
            )
        return type(self).model_validate({**self.model_dump(), **updates})


DEFAULT_MODEL_CONFIG = ModelConfig()


class PerformanceConfig(BaseModel):
    """Limits for file sizes, batches, and CLI runs."""

    max_image_size_mb: float = Field(default=10, gt=0)
    max_batch_size: int = Field(default=10, gt=0)
    parallel_processing: bool = True
    analysis_timeout: float = Field(default=30, gt=0)  # seconds
    max_concurrent_requests: int = Field(default=3, gt=0)

    @property
    def max_image_size_bytes(self) -> int:
        return int(self.max_image_size_mb * 1024 * 1024)

    @property
    def analysis_timeout_ms(self) -> int:
        return round(self.analysis_timeout * 1000)

    @property
    def effective_concurrency(self) -> int:
        if not self.parallel_processing:
            return 1
        return self.max_concurrent_requests


class CliConfig(BaseModel):
    """How the external CLI is launched.

    ``launcher`` is the executable (plus leading args) that runs ``tool``.
    """

    launcher: str = "npx"
    tool: str = DEFAULT_CLI_TOOL


class Settings(BaseModel):
    """Root configuration model."""

    gemini: ModelConfig = Field(default_factory=ModelConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    cli: CliConfig = Field(default_factory=CliConfig)

    def with_model_config(self, config: ModelConfig) -> "Settings":
        return self.model_copy(update={"gemini": config})

    def summary(self) -> dict[str, Any]:
        """Flattened view used by health checks and the CLI."""
        return {
            "gemini": self.gemini.model_dump(),
            "performance": self.performance.model_dump(),
            "cli": self.cli.model_dump(),
            "computed": {
                "max_image_size_bytes": self.performance.max_image_size_bytes,
                "analysis_timeout_ms": self.performance.analysis_timeout_ms,
                "max_concurrent_requests": self.performance.effective_concurrency,
            },
        }
