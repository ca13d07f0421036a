"""Types for image analysis requests and results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from gemini_vision.analysis.errors import AnalysisError

AnalysisType = Literal["describe", "ocr", "classify", "detect_objects"]
DetailLevel = Literal["brief", "standard", "detailed"]
Language = Literal["ja", "en", "auto"]

ANALYSIS_TYPES: tuple[AnalysisType, ...] = (
    "describe",
    "ocr",
    "classify",
    "detect_objects",
)
DETAIL_LEVELS: tuple[DetailLevel, ...] = ("brief", "standard", "detailed")
SUPPORTED_LANGUAGES: tuple[Language, ...] = ("ja", "en", "auto")


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    """One image analysis request.

    ``language`` of None defers to the model config's language.
    """

    input_path: Path
    analysis_type: AnalysisType = "describe"
    detail_level: DetailLevel = "standard"
    include_confidence: bool = False
    extract_colors: bool = False
    detect_faces: bool = False
    read_qr_codes: bool = False
    include_metadata: bool = False
    language: Language | None = None


@dataclass(slots=True)
class RawInvocationResult:
    """Captured output of one CLI process."""

    stdout: str
    stderr: str
    exit_code: int | None

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True, slots=True)
class ImageDimensions:
    width: int = 0
    height: int = 0


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    filename: str
    size: int
    dimensions: ImageDimensions = field(default_factory=ImageDimensions)
    format: str = ""
    exif: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ColorInfo:
    color: str
    percentage: float
    rgb: tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Structured view of one CLI response."""

    description: str
    objects: list[str]
    text: str
    metadata: ImageMetadata
    confidence: float
    colors: list[ColorInfo]
    processing_time_ms: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class BatchItemResult:
    """Outcome for a single input of a batch: a result or a classified error."""

    path: Path
    result: AnalysisResult | None = None
    error: AnalysisError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.path),
            "ok": self.ok,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error.to_dict() if self.error else None,
        }
