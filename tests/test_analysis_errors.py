"""Tests for error classification."""

import pytest

from gemini_vision.analysis.errors import (
    AnalysisError,
    ErrorCode,
    analysis_timeout,
    error_severity,
    image_too_large,
    map_child_process_error,
    map_file_system_error,
    map_process_error,
    network_error,
)


class TestMapChildProcessError:
    @pytest.mark.parametrize(
        ("stderr", "code"),
        [
            ("Error: Authentication failed for key", ErrorCode.GEMINI_AUTH_ERROR),
            ("401 Unauthorized", ErrorCode.GEMINI_AUTH_ERROR),
            ("Rate limit exceeded, retry later", ErrorCode.RATE_LIMIT_EXCEEDED),
            ("daily quota used up", ErrorCode.RATE_LIMIT_EXCEEDED),
            ("segfault", ErrorCode.NETWORK_ERROR),
            ("", ErrorCode.NETWORK_ERROR),
        ],
    )
    def test_classification(self, stderr, code):
        assert map_child_process_error(stderr, "", 1).code == code

    def test_auth_wins_over_rate_limit(self):
        error = map_child_process_error("Unauthorized (quota)", "", 1)
        assert error.code == ErrorCode.GEMINI_AUTH_ERROR

    def test_matching_is_case_sensitive(self):
        error = map_child_process_error("rate limit", "", 1)
        assert error.code == ErrorCode.NETWORK_ERROR

    def test_generic_failure_keeps_diagnostics(self):
        error = map_child_process_error("bad", "partial", 7)
        assert "code: 7" in error.message
        assert error.details == {"stderr": "bad", "stdout": "partial", "code": 7}


class TestMapProcessError:
    def test_timeout_error(self):
        error = map_process_error(TimeoutError(), timeout_ms=1500)
        assert error.code == ErrorCode.ANALYSIS_TIMEOUT
        assert error.details["timeout"] == 1500
        assert "1500ms" in error.message

    def test_timeout_in_message(self):
        error = map_process_error(RuntimeError("operation timed out"))
        assert error.code == ErrorCode.ANALYSIS_TIMEOUT

    def test_other_errors_are_network_errors(self):
        error = map_process_error(FileNotFoundError("npx not found"))
        assert error.code == ErrorCode.NETWORK_ERROR
        assert error.message.startswith("Network error: process execution error")
        assert error.details["original_error"] == "npx not found"

    def test_analysis_errors_pass_through(self):
        original = network_error("x")
        assert map_process_error(original) is original


class TestMapFileSystemError:
    def test_missing_file(self):
        error = map_file_system_error(FileNotFoundError("gone"), "/tmp/a.png")
        assert error.code == ErrorCode.FILE_NOT_FOUND
        assert error.details["file_path"] == "/tmp/a.png"

    def test_other_os_errors(self):
        error = map_file_system_error(PermissionError("denied"), "/tmp/a.png")
        assert error.code == ErrorCode.NETWORK_ERROR


@pytest.mark.parametrize(
    ("error", "severity"),
    [
        (AnalysisError(ErrorCode.GEMINI_AUTH_ERROR, "x"), "critical"),
        (AnalysisError(ErrorCode.RATE_LIMIT_EXCEEDED, "x"), "high"),
        (analysis_timeout(10), "medium"),
        (AnalysisError(ErrorCode.FILE_NOT_FOUND, "x"), "low"),
        (AnalysisError(ErrorCode.INVALID_IMAGE_FORMAT, "x"), "low"),
        (image_too_large(2, 1), "medium"),
        (network_error("x"), "medium"),
        (ValueError("x"), "medium"),
    ],
)
def test_error_severity(error, severity):
    assert error_severity(error) == severity


def test_to_dict():
    error = image_too_large(2048, 1024, "/tmp/big.png")
    assert error.to_dict() == {
        "code": "IMAGE_TOO_LARGE",
        "message": error.message,
        "details": {"actual_size": 2048, "max_size": 1024, "file_path": "/tmp/big.png"},
    }
    assert str(error) == error.message
