"""Heuristic extraction of structured fields from free-text CLI output.

The CLI gives no structured output format, so everything here is best-effort
pattern matching. None of these functions raise on odd input: a pattern that
does not match leaves the field at its zero value.
"""

from __future__ import annotations

import re

from gemini_vision.analysis.types import (
    AnalysisRequest,
    AnalysisResult,
    ColorInfo,
    ImageMetadata,
)
from gemini_vision.config.models import DEFAULT_CONFIDENCE_SCORE

_BULLET_ITEM = re.compile(r"^[-*•]\s+")
_NUMBERED_ITEM = re.compile(r"^\d+\.\s+")

_CATEGORY_FIELD = re.compile(
    r"(?:カテゴリー?|categor(?:y|ies))\s*[：:]\s*([^\n]+)", re.IGNORECASE
)
_TAG_FIELD = re.compile(r"(?:タグ|tags?)\s*[：:]\s*([^\n]+)", re.IGNORECASE)
_VALUE_SEPARATORS = re.compile(r"[,、，]")

_CONFIDENCE_FIELD = re.compile(
    r"(?:信頼度(?:スコア)?|confidence(?: score)?)\s*[：:]?\s*(\d+(?:\.\d+)?)\s*[%％]?",
    re.IGNORECASE,
)

_COLOR_FIELD = re.compile(r"(?:色|colou?rs?)\s*[：:]([^\n]+)", re.IGNORECASE)
_COLOR_VOCABULARY: tuple[str, ...] = (
    "赤",
    "青",
    "緑",
    "黄",
    "黒",
    "白",
    "茶",
    "紫",
    "オレンジ",
    "red",
    "blue",
    "green",
    "yellow",
    "black",
    "white",
    "brown",
    "purple",
    "orange",
)
# Placeholders: colors are detected by name only, not measured.
_PLACEHOLDER_PERCENTAGE = 0.1
_PLACEHOLDER_RGB = (0, 0, 0)


def extract_list_items(text: str) -> list[str]:
    """Return bullet and numbered list entries, markers stripped, in order."""
    items: list[str] = []
    for line in text.splitlines():
        if _BULLET_ITEM.match(line):
            item = _BULLET_ITEM.sub("", line, count=1)
        elif _NUMBERED_ITEM.match(line):
            item = _NUMBERED_ITEM.sub("", line, count=1)
        else:
            continue
        item = item.strip()
        if item:
            items.append(item)
    return items


def _split_values(value: str) -> list[str]:
    return [part.strip() for part in _VALUE_SEPARATORS.split(value) if part.strip()]


def extract_categories(text: str) -> list[str]:
    """Return category values followed by tag values."""
    categories: list[str] = []
    if match := _CATEGORY_FIELD.search(text):
        categories.extend(_split_values(match.group(1)))
    if match := _TAG_FIELD.search(text):
        categories.extend(_split_values(match.group(1)))
    return categories


def extract_confidence(text: str) -> float:
    match = _CONFIDENCE_FIELD.search(text)
    if not match:
        return DEFAULT_CONFIDENCE_SCORE
    score = float(match.group(1))
    if score > 1:
        score /= 100
    return min(max(score, 0.0), 1.0)


def extract_colors(text: str) -> list[ColorInfo]:
    match = _COLOR_FIELD.search(text)
    if not match:
        return []
    value = match.group(1).lower()
    return [
        ColorInfo(
            color=color,
            percentage=_PLACEHOLDER_PERCENTAGE,
            rgb=_PLACEHOLDER_RGB,
        )
        for color in _COLOR_VOCABULARY
        if color in value
    ]


def extract_result(
    raw: str,
    request: AnalysisRequest,
    processing_time_ms: int,
    metadata: ImageMetadata,
) -> AnalysisResult:
    objects: list[str] = []
    text = ""

    if request.analysis_type == "ocr":
        text = raw
    elif request.analysis_type == "detect_objects":
        objects = extract_list_items(raw)
    elif request.analysis_type == "classify":
        objects = extract_categories(raw)

    confidence = DEFAULT_CONFIDENCE_SCORE
    if request.include_confidence:
        confidence = extract_confidence(raw)

    colors: list[ColorInfo] = []
    if request.extract_colors:
        colors = extract_colors(raw)

    return AnalysisResult(
        description=raw,
        objects=objects,
        text=text,
        metadata=metadata,
        confidence=confidence,
        colors=colors,
        processing_time_ms=max(0, int(processing_time_ms)),
    )
