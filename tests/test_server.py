"""Tests for the MCP image analysis server."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gemini_vision.analysis.client import GeminiClient
from gemini_vision.analysis.errors import ErrorCode, rate_limit_exceeded
from gemini_vision.config.models import ConfigError, ModelConfig, Settings
from gemini_vision.server import (
    ImageAnalysisServer,
    error_response,
    success_response,
)


class _FakeRunner:
    timeout_ms = 30000

    def __init__(self, failures=None):
        self.failures = failures or {}
        self.calls: list[list[str]] = []

    async def run(self, args: list[str]) -> str:
        self.calls.append(args)
        name = Path(args[args.index("--file") + 1]).name
        if name in self.failures:
            raise self.failures[name]
        return f"- object in {name}\n信頼度: 90%"


def _server(settings: Settings, runner: _FakeRunner, metadata_reader=None):
    kwargs = {"metadata_reader": metadata_reader} if metadata_reader else {}
    client = GeminiClient(
        settings.gemini,
        runner=runner,
        max_concurrent_requests=settings.performance.effective_concurrency,
        **kwargs,
    )
    return ImageAnalysisServer(settings, client=client)


class TestResponses:
    def test_success_keeps_unicode(self):
        assert json.loads(success_response({"text": "猫"})) == {"text": "猫"}
        assert "猫" in success_response({"text": "猫"})

    def test_analysis_error(self):
        payload = json.loads(error_response(rate_limit_exceeded({"code": 1})))
        assert payload == {
            "error": True,
            "code": "RATE_LIMIT_EXCEEDED",
            "message": "Gemini rate limit reached",
            "details": {"code": 1},
        }

    def test_config_error(self):
        payload = json.loads(error_response(ConfigError("bad model")))
        assert payload["code"] == "INVALID_CONFIG"

    def test_unexpected_error(self):
        payload = json.loads(error_response(RuntimeError("boom")))
        assert payload == {"error": True, "code": "UNEXPECTED_ERROR", "message": "boom"}


class TestAnalyzeImage:
    @pytest.mark.asyncio
    async def test_returns_result_with_metadata(self, settings, png_image):
        runner = _FakeRunner()
        server = _server(settings, runner)

        result = await server.analyze_image(str(png_image), analysis_type="detect_objects")

        assert result["objects"] == ["object in sample.png"]
        assert result["metadata"]["dimensions"] == {"width": 32, "height": 16}
        assert result["metadata"]["format"] == "png"

    @pytest.mark.asyncio
    async def test_call_overrides_do_not_persist(self, settings, png_image):
        runner = _FakeRunner()
        server = _server(settings, runner)

        await server.analyze_image(
            str(png_image), language="en", model="gemini-1.5-flash"
        )

        args = runner.calls[0]
        assert args[2].startswith("Please respond in English.")
        assert "gemini-1.5-flash" in args
        assert server.client.config == ModelConfig()

    @pytest.mark.asyncio
    async def test_missing_file_is_reported(self, settings, tmp_path):
        server = _server(settings, _FakeRunner())
        response = await server._respond(
            "analyze_image_with_gemini",
            server.analyze_image(str(tmp_path / "missing.png")),
        )
        payload = json.loads(response)
        assert payload["error"] is True
        assert payload["code"] == ErrorCode.FILE_NOT_FOUND


class TestBatchProcessImages:
    @pytest.mark.asyncio
    async def test_processes_directory(self, settings, image_dir, metadata_reader):
        runner = _FakeRunner(failures={"b.JPG": rate_limit_exceeded()})
        server = _server(settings, runner, metadata_reader)

        result = await server.batch_process_images(str(image_dir))

        assert result["total_found"] == 3
        assert result["processed_count"] == 2
        assert [r["metadata"]["filename"] for r in result["results"]] == [
            "a.png",
            "c.gif",
        ]
        assert result["failures"][0]["code"] == "RATE_LIMIT_EXCEEDED"
        assert result["failures"][0]["path"].endswith("b.JPG")

    @pytest.mark.asyncio
    async def test_oversized_files_are_reported_not_analyzed(
        self, image_dir, metadata_reader
    ):
        settings = Settings.model_validate(
            {"performance": {"max_image_size_mb": 0.000001}}
        )
        runner = _FakeRunner()
        server = _server(settings, runner, metadata_reader)

        result = await server.batch_process_images(str(image_dir))

        assert result["processed_count"] == 0
        assert {f["code"] for f in result["failures"]} == {"IMAGE_TOO_LARGE"}
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_max_files_defaults_to_batch_size(self, image_dir, metadata_reader):
        settings = Settings.model_validate({"performance": {"max_batch_size": 2}})
        server = _server(settings, _FakeRunner(), metadata_reader)

        result = await server.batch_process_images(str(image_dir))

        assert result["total_found"] == 2

    @pytest.mark.asyncio
    async def test_no_matches(self, settings, image_dir):
        server = _server(settings, _FakeRunner())

        result = await server.batch_process_images(str(image_dir), "*.webp")

        assert result == {
            "message": "No image files found in the directory",
            "directory": str(image_dir),
            "pattern": "*.webp",
        }


class TestConfigureSettings:
    @pytest.mark.asyncio
    async def test_updates_client_and_settings(self, settings):
        server = _server(settings, _FakeRunner())

        result = await server.configure_settings(temperature=0.2, max_tokens=512)

        assert result["message"] == "Settings updated"
        assert result["new_config"]["temperature"] == 0.2
        assert result["new_config"]["max_output_tokens"] == 512
        assert result["new_config"]["model"] == "gemini-2.5-pro"
        assert server.client.config.temperature == 0.2
        assert server.settings.gemini.max_output_tokens == 512

    @pytest.mark.asyncio
    async def test_unknown_model_is_rejected(self, settings):
        server = _server(settings, _FakeRunner())

        response = await server._respond(
            "configure_gemini_settings", server.configure_settings(model="gpt-4")
        )

        assert json.loads(response)["code"] == "INVALID_CONFIG"
        assert server.client.config == ModelConfig()

    @pytest.mark.asyncio
    async def test_out_of_range_value_is_rejected(self, settings):
        server = _server(settings, _FakeRunner())

        response = await server._respond(
            "configure_gemini_settings", server.configure_settings(temperature=5)
        )

        assert json.loads(response)["code"] == "INVALID_CONFIG"


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy(self, settings):
        result = await _server(settings, _FakeRunner()).health_check()
        assert result["server_status"] == "healthy"
        assert result["validation"] == {"valid": True, "errors": []}
        assert result["config_summary"]["computed"]["analysis_timeout_ms"] == 30000

    @pytest.mark.asyncio
    async def test_warning_on_bad_environment(self, settings, monkeypatch):
        monkeypatch.setenv("MAX_CONCURRENT_REQUESTS", "-1")
        result = await _server(settings, _FakeRunner()).health_check()
        assert result["server_status"] == "warning"
        assert result["validation"]["valid"] is False


@pytest.mark.asyncio
async def test_tools_are_registered(settings):
    server = _server(settings, _FakeRunner())
    tools = await server.mcp.list_tools()
    assert {tool.name for tool in tools} == {
        "analyze_image_with_gemini",
        "batch_process_images",
        "configure_gemini_settings",
        "health_check",
    }
