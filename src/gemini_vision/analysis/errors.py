"""Classified analysis errors.

Every failure that leaves the analysis pipeline is an ``AnalysisError`` with a
stable ``ErrorCode`` and a ``details`` mapping holding enough diagnostics
(exit code, stderr/stdout, original error text) to log without re-running.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

Severity = Literal["low", "medium", "high", "critical"]


class ErrorCode(StrEnum):
    GEMINI_AUTH_ERROR = "GEMINI_AUTH_ERROR"
    IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
    ANALYSIS_TIMEOUT = "ANALYSIS_TIMEOUT"
    INVALID_IMAGE_FORMAT = "INVALID_IMAGE_FORMAT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"


class AnalysisError(Exception):
    """Analysis failure with stable error code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


def authentication_failed(details: dict[str, Any] | None = None) -> AnalysisError:
    return AnalysisError(
        ErrorCode.GEMINI_AUTH_ERROR,
        "Gemini API authentication failed",
        details,
    )


def rate_limit_exceeded(details: dict[str, Any] | None = None) -> AnalysisError:
    return AnalysisError(
        ErrorCode.RATE_LIMIT_EXCEEDED,
        "Gemini rate limit reached",
        details,
    )


def analysis_timeout(
    timeout_ms: int, details: dict[str, Any] | None = None
) -> AnalysisError:
    return AnalysisError(
        ErrorCode.ANALYSIS_TIMEOUT,
        f"Analysis timed out ({timeout_ms}ms)",
        {"timeout": timeout_ms, **(details or {})},
    )


def file_not_found(
    file_path: str, details: dict[str, Any] | None = None
) -> AnalysisError:
    return AnalysisError(
        ErrorCode.FILE_NOT_FOUND,
        f"File not found: {file_path}",
        {"file_path": file_path, **(details or {})},
    )


def image_too_large(
    actual_size: int, max_size: int, file_path: str | None = None
) -> AnalysisError:
    return AnalysisError(
        ErrorCode.IMAGE_TOO_LARGE,
        f"Image exceeds size limit: {actual_size} bytes (limit: {max_size} bytes)",
        {"actual_size": actual_size, "max_size": max_size, "file_path": file_path},
    )


def invalid_image_format(
    file_path: str, supported_formats: list[str]
) -> AnalysisError:
    return AnalysisError(
        ErrorCode.INVALID_IMAGE_FORMAT,
        f"Unsupported image format: {file_path}",
        {"file_path": file_path, "supported_formats": supported_formats},
    )


def network_error(
    message: str, details: dict[str, Any] | None = None
) -> AnalysisError:
    return AnalysisError(
        ErrorCode.NETWORK_ERROR,
        f"Network error: {message}",
        details,
    )


def map_child_process_error(
    stderr: str, stdout: str, code: int | None
) -> AnalysisError:
    """Classify a CLI run that exited with a non-zero (or unknown) status."""
    details = {"stderr": stderr, "stdout": stdout, "code": code}
    if "Authentication failed" in stderr or "Unauthorized" in stderr:
        return authentication_failed(details)
    if "Rate limit" in stderr or "quota" in stderr:
        return rate_limit_exceeded(details)
    return network_error(f"Gemini CLI execution failed (code: {code})", details)


def map_process_error(
    error: BaseException, timeout_ms: int | None = None
) -> AnalysisError:
    """Classify a failure of the process itself (spawn, OS error, timeout)."""
    if isinstance(error, AnalysisError):
        return error
    message = str(error)
    lowered = message.lower()
    if (
        isinstance(error, TimeoutError)
        or "timeout" in lowered
        or "timed out" in lowered
    ):
        return analysis_timeout(
            timeout_ms or 0,
            {"original_error": message or type(error).__name__},
        )
    return network_error(
        f"process execution error: {message or type(error).__name__}",
        {"original_error": message},
    )


def map_file_system_error(error: BaseException, file_path: str) -> AnalysisError:
    if isinstance(error, AnalysisError):
        return error
    message = str(error)
    if isinstance(error, FileNotFoundError) or "no such file" in message.lower():
        return file_not_found(file_path, {"original_error": message})
    return network_error(
        f"file access error: {message}",
        {"file_path": file_path, "original_error": message},
    )


_SEVERITY_BY_CODE: dict[ErrorCode, Severity] = {
    ErrorCode.GEMINI_AUTH_ERROR: "critical",
    ErrorCode.RATE_LIMIT_EXCEEDED: "high",
    ErrorCode.ANALYSIS_TIMEOUT: "medium",
    ErrorCode.FILE_NOT_FOUND: "low",
    ErrorCode.INVALID_IMAGE_FORMAT: "low",
}


def error_severity(error: BaseException) -> Severity:
    if not isinstance(error, AnalysisError):
        return "medium"
    return _SEVERITY_BY_CODE.get(error.code, "medium")
