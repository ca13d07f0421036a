"""Tests for prompt and CLI argument construction."""

from pathlib import Path

import pytest

from gemini_vision.analysis.commands import (
    build_command,
    build_invocation,
    build_prompt,
)
from gemini_vision.analysis.types import AnalysisRequest
from gemini_vision.config.models import DEFAULT_CLI_TOOL, ModelConfig

IMAGE = Path("/images/cat.png")


class TestBuildPrompt:
    def test_describe_in_japanese_by_default(self):
        prompt = build_prompt(AnalysisRequest(input_path=IMAGE), ModelConfig())
        assert prompt == (
            "日本語で回答してください。画像に写っているものを詳しく説明してください。"
        )

    @pytest.mark.parametrize(
        ("analysis_type", "expected"),
        [
            ("ocr", "画像内のテキストを正確に読み取って抽出してください。"),
            ("classify", "画像のカテゴリを分類し、タグを付けてください。"),
            ("detect_objects", "画像内のオブジェクトを検出して一覧にしてください。"),
        ],
    )
    def test_base_template_per_type(self, analysis_type, expected):
        request = AnalysisRequest(input_path=IMAGE, analysis_type=analysis_type)
        prompt = build_prompt(request, ModelConfig(language="auto"))
        assert prompt == expected

    def test_detail_levels(self):
        config = ModelConfig(language="auto")
        brief = build_prompt(
            AnalysisRequest(input_path=IMAGE, detail_level="brief"), config
        )
        detailed = build_prompt(
            AnalysisRequest(input_path=IMAGE, detail_level="detailed"), config
        )
        standard = build_prompt(AnalysisRequest(input_path=IMAGE), config)

        assert brief.endswith(" 簡潔にまとめてください。")
        assert detailed.endswith(" 可能な限り詳細に分析してください。")
        assert standard == "画像に写っているものを詳しく説明してください。"

    def test_flag_clauses_follow_fixed_order(self):
        request = AnalysisRequest(
            input_path=IMAGE,
            read_qr_codes=True,
            detect_faces=True,
            extract_colors=True,
            include_confidence=True,
        )
        prompt = build_prompt(request, ModelConfig(language="auto"))

        positions = [
            prompt.index("信頼度スコア"),
            prompt.index("色情報"),
            prompt.index("顔"),
            prompt.index("QRコード"),
        ]
        assert positions == sorted(positions)

    def test_language_preamble_is_prefixed_after_clauses(self):
        request = AnalysisRequest(
            input_path=IMAGE, detail_level="brief", include_confidence=True
        )
        prompt = build_prompt(request, ModelConfig(language="en"))
        assert prompt.startswith("Please respond in English. 画像に写っている")
        assert prompt.endswith("信頼度スコアも含めてください。")

    def test_request_language_overrides_config(self):
        request = AnalysisRequest(input_path=IMAGE, language="auto")
        prompt = build_prompt(request, ModelConfig(language="ja"))
        assert not prompt.startswith("日本語で")

    def test_include_metadata_does_not_change_prompt(self):
        config = ModelConfig()
        plain = build_prompt(AnalysisRequest(input_path=IMAGE), config)
        with_meta = build_prompt(
            AnalysisRequest(input_path=IMAGE, include_metadata=True), config
        )
        assert plain == with_meta


class TestBuildCommand:
    def test_default_config_has_no_extra_arguments(self):
        args = build_command("prompt", IMAGE, ModelConfig())
        assert args == [
            DEFAULT_CLI_TOOL,
            "--prompt",
            "prompt",
            "--file",
            "/images/cat.png",
        ]

    def test_language_alone_adds_no_arguments(self):
        args = build_command("prompt", IMAGE, ModelConfig(language="en"))
        assert len(args) == 5

    def test_non_default_values_are_appended(self):
        config = ModelConfig(
            model="gemini-1.5-flash", temperature=0.2, max_output_tokens=512
        )
        args = build_command("prompt", IMAGE, config)
        assert args[5:] == [
            "--model",
            "gemini-1.5-flash",
            "--temperature",
            "0.2",
            "--max-tokens",
            "512",
        ]

    def test_only_changed_values_are_appended(self):
        args = build_command("prompt", IMAGE, ModelConfig(temperature=0.0))
        assert args[5:] == ["--temperature", "0.0"]

    def test_custom_tool(self):
        args = build_command("p", IMAGE, ModelConfig(), tool="gemini")
        assert args[0] == "gemini"


def test_invocation_is_deterministic():
    request = AnalysisRequest(
        input_path=IMAGE,
        analysis_type="classify",
        include_confidence=True,
        extract_colors=True,
    )
    config = ModelConfig(model="gemini-1.5-pro", temperature=0.3)

    first = build_invocation(request, config)
    second = build_invocation(request, config)

    assert first == second
    prompt, args = first
    assert args[2] == prompt
