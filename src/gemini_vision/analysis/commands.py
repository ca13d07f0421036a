"""Prompt and argv construction for Gemini CLI runs.

Both builders are pure: the same request and config always produce the same
prompt and the same argument list.
"""

from __future__ import annotations

from pathlib import Path

from gemini_vision.analysis.types import AnalysisRequest, AnalysisType, DetailLevel
from gemini_vision.config.models import (
    DEFAULT_CLI_TOOL,
    DEFAULT_MODEL_CONFIG,
    ModelConfig,
)

_BASE_PROMPTS: dict[AnalysisType, str] = {
    "describe": "画像に写っているものを詳しく説明してください。",
    "ocr": "画像内のテキストを正確に読み取って抽出してください。",
    "classify": "画像のカテゴリを分類し、タグを付けてください。",
    "detect_objects": "画像内のオブジェクトを検出して一覧にしてください。",
}

_DETAIL_CLAUSES: dict[DetailLevel, str] = {
    "brief": " 簡潔にまとめてください。",
    "standard": "",
    "detailed": " 可能な限り詳細に分析してください。",
}

_CONFIDENCE_CLAUSE = " 各項目について信頼度スコアも含めてください。"
_COLORS_CLAUSE = " 主要な色情報も分析してください。"
_FACES_CLAUSE = " 人物の顔が写っている場合は検出してください。"
_QR_CLAUSE = " QRコードがある場合は読み取ってください。"

_LANGUAGE_PREAMBLES = {
    "en": "Please respond in English. ",
    "ja": "日本語で回答してください。",
    "auto": "",
}


def build_prompt(request: AnalysisRequest, config: ModelConfig) -> str:
    prompt = _BASE_PROMPTS[request.analysis_type]
    prompt += _DETAIL_CLAUSES[request.detail_level]

    # Clause order is fixed: confidence, colors, faces, QR codes.
    if request.include_confidence:
        prompt += _CONFIDENCE_CLAUSE
    if request.extract_colors:
        prompt += _COLORS_CLAUSE
    if request.detect_faces:
        prompt += _FACES_CLAUSE
    if request.read_qr_codes:
        prompt += _QR_CLAUSE

    language = request.language or config.language
    return _LANGUAGE_PREAMBLES[language] + prompt


def build_command(
    prompt: str,
    image_path: Path | str,
    config: ModelConfig,
    *,
    tool: str = DEFAULT_CLI_TOOL,
) -> list[str]:
    """Build CLI arguments; settings equal to the defaults are left out."""
    args = [tool, "--prompt", prompt, "--file", str(image_path)]

    if config.model != DEFAULT_MODEL_CONFIG.model:
        args.extend(["--model", config.model])
    if config.temperature != DEFAULT_MODEL_CONFIG.temperature:
        args.extend(["--temperature", str(config.temperature)])
    if config.max_output_tokens != DEFAULT_MODEL_CONFIG.max_output_tokens:
        args.extend(["--max-tokens", str(config.max_output_tokens)])

    return args


def build_invocation(
    request: AnalysisRequest,
    config: ModelConfig,
    *,
    tool: str = DEFAULT_CLI_TOOL,
) -> tuple[str, list[str]]:
    prompt = build_prompt(request, config)
    return prompt, build_command(prompt, request.input_path, config, tool=tool)
