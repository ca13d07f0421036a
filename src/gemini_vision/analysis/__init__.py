"""Image analysis through the Gemini CLI."""

from gemini_vision.analysis.client import GeminiClient, iter_windows
from gemini_vision.analysis.commands import (
    build_command,
    build_invocation,
    build_prompt,
)
from gemini_vision.analysis.errors import AnalysisError, ErrorCode
from gemini_vision.analysis.extract import extract_result
from gemini_vision.analysis.runner import ProcessRunner
from gemini_vision.analysis.types import (
    AnalysisRequest,
    AnalysisResult,
    BatchItemResult,
    ColorInfo,
    ImageDimensions,
    ImageMetadata,
    RawInvocationResult,
)

__all__ = [
    "AnalysisError",
    "AnalysisRequest",
    "AnalysisResult",
    "BatchItemResult",
    "ColorInfo",
    "ErrorCode",
    "GeminiClient",
    "ImageDimensions",
    "ImageMetadata",
    "ProcessRunner",
    "RawInvocationResult",
    "build_command",
    "build_invocation",
    "build_prompt",
    "extract_result",
    "iter_windows",
]
