"""Gemini CLI client: single-image analysis and windowed batch analysis."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any, TypeVar

from gemini_vision.analysis.commands import build_invocation
from gemini_vision.analysis.errors import (
    AnalysisError,
    error_severity,
    map_process_error,
)
from gemini_vision.analysis.extract import extract_result
from gemini_vision.analysis.runner import ProcessRunner
from gemini_vision.analysis.types import (
    AnalysisRequest,
    AnalysisResult,
    BatchItemResult,
    ImageMetadata,
)
from gemini_vision.config.models import DEFAULT_CLI_TOOL, ModelConfig, Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

MetadataReader = Callable[[Path, bool], ImageMetadata]


def iter_windows(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield contiguous slices of ``size`` items; the last may be shorter."""
    if size <= 0:
        raise ValueError("window size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class GeminiClient:
    """Runs analyses through the Gemini CLI.

    The model config is immutable and read once per item at dispatch, so
    ``update_config`` during a batch only affects items not yet started.
    """

    def __init__(
        self,
        config: ModelConfig,
        *,
        runner: ProcessRunner,
        tool: str = DEFAULT_CLI_TOOL,
        max_concurrent_requests: int = 3,
        metadata_reader: MetadataReader | None = None,
    ) -> None:
        if max_concurrent_requests <= 0:
            raise ValueError("max_concurrent_requests must be positive")
        self._config = config
        self._runner = runner
        self._tool = tool
        self._max_concurrent_requests = max_concurrent_requests
        if metadata_reader is None:
            from gemini_vision.files import read_image_metadata

            metadata_reader = read_image_metadata
        self._metadata_reader = metadata_reader

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiClient:
        runner = ProcessRunner(
            settings.cli.launcher,
            timeout_seconds=settings.performance.analysis_timeout,
        )
        return cls(
            settings.gemini,
            runner=runner,
            tool=settings.cli.tool,
            max_concurrent_requests=settings.performance.effective_concurrency,
        )

    @property
    def config(self) -> ModelConfig:
        return self._config

    @property
    def max_concurrent_requests(self) -> int:
        return self._max_concurrent_requests

    def update_config(self, changes: Mapping[str, Any] | None = None) -> ModelConfig:
        """Merge ``changes`` into the current config; omitted fields are kept."""
        self._config = self._config.merged(changes)
        return self._config

    async def analyze_image(
        self,
        request: AnalysisRequest,
        *,
        config: ModelConfig | None = None,
    ) -> AnalysisResult:
        """Analyze one image.

        ``config`` overrides the client's config for this call only.

        Raises:
            AnalysisError: the first classified failure, unchanged.
        """
        snapshot = config or self._config
        started = time.monotonic()
        try:
            _prompt, args = build_invocation(request, snapshot, tool=self._tool)
            raw = await self._runner.run(args)
            elapsed_ms = int((time.monotonic() - started) * 1000)
            metadata = await asyncio.to_thread(
                self._metadata_reader, request.input_path, request.include_metadata
            )
        except AnalysisError:
            raise
        except Exception as e:
            raise map_process_error(e, timeout_ms=self._runner.timeout_ms) from e

        result = extract_result(raw, request, elapsed_ms, metadata)
        logger.debug(
            "image_analyzed",
            extra={
                "image.path": str(request.input_path),
                "analysis.type": request.analysis_type,
                "duration_ms": elapsed_ms,
            },
        )
        return result

    async def batch_analyze(
        self,
        paths: Sequence[Path | str],
        template: AnalysisRequest,
        *,
        concurrency: int | None = None,
    ) -> list[AnalysisResult]:
        """Analyze many images; failed items are logged and left out."""
        outcomes = await self.batch_analyze_detailed(
            paths, template, concurrency=concurrency
        )
        return [outcome.result for outcome in outcomes if outcome.result is not None]

    async def batch_analyze_detailed(
        self,
        paths: Sequence[Path | str],
        template: AnalysisRequest,
        *,
        concurrency: int | None = None,
    ) -> list[BatchItemResult]:
        """Analyze many images, returning one outcome per input.

        Inputs are processed in windows of ``concurrency`` items. Items in a
        window run concurrently, and the next window starts only after every
        item in the current one has finished.
        """
        window_size = (
            self._max_concurrent_requests if concurrency is None else concurrency
        )
        outcomes: list[BatchItemResult] = []
        for window in iter_windows(list(paths), window_size):
            requests = [
                dataclasses.replace(template, input_path=Path(path))
                for path in window
            ]
            outcomes.extend(
                await asyncio.gather(*(self._analyze_item(req) for req in requests))
            )

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info(
            "batch_completed",
            extra={
                "batch.total": len(outcomes),
                "batch.failed": failed,
                "batch.window_size": window_size,
            },
        )
        return outcomes

    async def _analyze_item(self, request: AnalysisRequest) -> BatchItemResult:
        try:
            result = await self.analyze_image(request)
        except AnalysisError as e:
            _log_item_failure(request.input_path, e)
            return BatchItemResult(path=request.input_path, error=e)
        return BatchItemResult(path=request.input_path, result=result)


def _log_item_failure(path: Path, error: AnalysisError) -> None:
    severity = error_severity(error)
    level = logging.ERROR if severity in ("high", "critical") else logging.WARNING
    logger.log(
        level,
        "batch_item_failed",
        extra={
            "image.path": str(path),
            "error.code": error.code.value,
            "error.message": error.message,
            "error.severity": severity,
        },
    )
