"""MCP server exposing Gemini image analysis as tools.

Tool handlers return JSON text. Failures become an error payload
(``{"error": true, "code": ..., "message": ...}``) instead of a protocol
error, so the calling agent can read the reason.
"""

import json
import logging
from collections.abc import Awaitable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from gemini_vision.analysis.client import GeminiClient
from gemini_vision.analysis.errors import AnalysisError, error_severity
from gemini_vision.analysis.types import AnalysisRequest, AnalysisType, DetailLevel
from gemini_vision.config.loader import validate_environment
from gemini_vision.config.models import AVAILABLE_GEMINI_MODELS, ConfigError, Settings
from gemini_vision.files import list_image_files, validate_image_file

logger = logging.getLogger(__name__)

SERVER_NAME = "gemini-image-analyzer"
SERVER_INSTRUCTIONS = (
    "Analyze local image files with the Gemini CLI: descriptions, OCR, "
    "classification and object detection."
)

_SEVERITY_LEVELS = {
    "low": logging.INFO,
    "medium": logging.WARNING,
    "high": logging.ERROR,
    "critical": logging.ERROR,
}


def success_response(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def error_response(error: BaseException) -> str:
    if isinstance(error, AnalysisError):
        payload = {"error": True, **error.to_dict()}
    elif isinstance(error, ConfigError | ValidationError):
        payload = {"error": True, "code": "INVALID_CONFIG", "message": str(error)}
    else:
        payload = {
            "error": True,
            "code": "UNEXPECTED_ERROR",
            "message": str(error),
        }
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


class ImageAnalysisServer:
    """Holds settings and the client, and registers MCP tools on a FastMCP app."""

    def __init__(self, settings: Settings, client: GeminiClient | None = None):
        self._settings = settings
        self._client = client or GeminiClient.from_settings(settings)
        self.mcp = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS)
        self._register_tools()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def client(self) -> GeminiClient:
        return self._client

    async def analyze_image(
        self,
        image_path: str,
        analysis_type: AnalysisType = "describe",
        detail_level: DetailLevel = "standard",
        language: Literal["ja", "en", "auto"] | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        path = validate_image_file(
            image_path, self._settings.performance.max_image_size_bytes
        )
        # Per-call overrides apply to this request only.
        call_config = self._client.config.merged(
            {"model": model, "temperature": temperature, "language": language}
        )
        request = AnalysisRequest(
            input_path=path,
            analysis_type=analysis_type,
            detail_level=detail_level,
            include_metadata=True,
        )
        result = await self._client.analyze_image(request, config=call_config)
        return result.to_dict()

    async def batch_process_images(
        self,
        directory_path: str,
        file_pattern: str = "*",
        analysis_type: AnalysisType = "describe",
        detail_level: DetailLevel = "standard",
        max_files: int | None = None,
    ) -> dict[str, Any]:
        limit = max_files or self._settings.performance.max_batch_size
        image_paths = list_image_files(directory_path, file_pattern, limit)
        if not image_paths:
            return {
                "message": "No image files found in the directory",
                "directory": directory_path,
                "pattern": file_pattern,
            }

        max_size = self._settings.performance.max_image_size_bytes
        accepted: list[Path] = []
        failures: list[dict[str, Any]] = []
        for image_path in image_paths:
            try:
                accepted.append(validate_image_file(image_path, max_size))
            except AnalysisError as e:
                failures.append({"path": str(image_path), **e.to_dict()})

        template = AnalysisRequest(
            input_path=Path(directory_path),
            analysis_type=analysis_type,
            detail_level=detail_level,
            include_metadata=True,
        )
        outcomes = await self._client.batch_analyze_detailed(accepted, template)
        results = [o.result.to_dict() for o in outcomes if o.result is not None]
        failures.extend(
            {"path": str(o.path), **o.error.to_dict()}
            for o in outcomes
            if o.error is not None
        )
        return {
            "processed_count": len(results),
            "total_found": len(image_paths),
            "results": results,
            "failures": failures,
        }

    async def configure_settings(
        self,
        model: str | None = None,
        temperature: float | None = None,
        language: Literal["ja", "en", "auto"] | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        if model is not None and model not in AVAILABLE_GEMINI_MODELS:
            raise ConfigError(
                f"Unknown model '{model}'. Available: {', '.join(AVAILABLE_GEMINI_MODELS)}"
            )
        new_config = self._client.update_config(
            {
                "model": model,
                "temperature": temperature,
                "language": language,
                "max_output_tokens": max_tokens,
            }
        )
        self._settings = self._settings.with_model_config(new_config)
        logger.info("settings_updated", extra={"gemini.config": new_config.model_dump()})
        return {
            "message": "Settings updated",
            "new_config": new_config.model_dump(),
        }

    async def health_check(self) -> dict[str, Any]:
        problems = validate_environment()
        return {
            "server_status": "healthy" if not problems else "warning",
            "config_summary": self._settings.summary(),
            "validation": {"valid": not problems, "errors": problems},
            "timestamp": datetime.now(UTC).isoformat(),
        }

    async def _respond(self, tool: str, call: Awaitable[dict[str, Any]]) -> str:
        try:
            return success_response(await call)
        except (AnalysisError, ConfigError, ValidationError) as e:
            level = _SEVERITY_LEVELS[error_severity(e)]
            logger.log(
                level,
                "tool_failed",
                extra={"tool.name": tool, "error.message": str(e)},
            )
            return error_response(e)
        except Exception as e:
            logger.error(
                "tool_failed_unexpectedly",
                extra={"tool.name": tool, "error.message": str(e)},
                exc_info=True,
            )
            return error_response(e)

    def _register_tools(self) -> None:
        @self.mcp.tool(
            name="analyze_image_with_gemini",
            description="Analyze an image in detail using the Gemini CLI",
        )
        async def analyze_image_with_gemini(
            image_path: str,
            analysis_type: AnalysisType = "describe",
            detail_level: DetailLevel = "standard",
            language: Literal["ja", "en", "auto"] | None = None,
            model: str | None = None,
            temperature: float | None = None,
        ) -> str:
            return await self._respond(
                "analyze_image_with_gemini",
                self.analyze_image(
                    image_path,
                    analysis_type=analysis_type,
                    detail_level=detail_level,
                    language=language,
                    model=model,
                    temperature=temperature,
                ),
            )

        @self.mcp.tool(
            name="batch_process_images",
            description="Analyze every image in a directory",
        )
        async def batch_process_images(
            directory_path: str,
            file_pattern: str = "*",
            analysis_type: AnalysisType = "describe",
            detail_level: DetailLevel = "standard",
            max_files: int | None = None,
        ) -> str:
            return await self._respond(
                "batch_process_images",
                self.batch_process_images(
                    directory_path,
                    file_pattern=file_pattern,
                    analysis_type=analysis_type,
                    detail_level=detail_level,
                    max_files=max_files,
                ),
            )

        @self.mcp.tool(
            name="configure_gemini_settings",
            description="Change the default Gemini analysis settings",
        )
        async def configure_gemini_settings(
            model: str | None = None,
            temperature: float | None = None,
            language: Literal["ja", "en", "auto"] | None = None,
            max_tokens: int | None = None,
        ) -> str:
            return await self._respond(
                "configure_gemini_settings",
                self.configure_settings(
                    model=model,
                    temperature=temperature,
                    language=language,
                    max_tokens=max_tokens,
                ),
            )

        @self.mcp.tool(
            name="health_check",
            description="Report server status and effective configuration",
        )
        async def health_check() -> str:
            return await self._respond("health_check", self.health_check())

    async def run(self) -> None:
        logger.info("server_starting", extra={"server.name": SERVER_NAME})
        await self.mcp.run_stdio_async()
