"""Image file validation, discovery, and metadata.

These helpers run before and around the analysis pipeline; the pipeline
itself never touches the filesystem except through ``read_image_metadata``.
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Any

from PIL import ExifTags, Image, UnidentifiedImageError

from gemini_vision.analysis.errors import (
    file_not_found,
    image_too_large,
    invalid_image_format,
    map_file_system_error,
)
from gemini_vision.analysis.types import ImageDimensions, ImageMetadata
from gemini_vision.config.models import SUPPORTED_IMAGE_FORMATS

logger = logging.getLogger(__name__)


def is_image_file(path: Path | str) -> bool:
    return Path(path).suffix.lower() in SUPPORTED_IMAGE_FORMATS


def validate_image_file(path: Path | str, max_size_bytes: int) -> Path:
    """Check that ``path`` is an existing, supported image within the size limit.

    Returns:
        The path as a Path.

    Raises:
        AnalysisError: FILE_NOT_FOUND, INVALID_IMAGE_FORMAT or IMAGE_TOO_LARGE.
    """
    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise file_not_found(str(file_path))
    if file_path.is_dir():
        raise file_not_found(str(file_path), {"reason": "Path is a directory"})
    if not is_image_file(file_path):
        raise invalid_image_format(str(file_path), list(SUPPORTED_IMAGE_FORMATS))

    try:
        size = file_path.stat().st_size
    except OSError as e:
        raise map_file_system_error(e, str(file_path)) from e
    if size > max_size_bytes:
        raise image_too_large(size, max_size_bytes, str(file_path))
    return file_path


def list_image_files(
    directory: Path | str,
    pattern: str = "*",
    max_files: int | None = None,
) -> list[Path]:
    """List supported images in ``directory`` (non-recursive, sorted by name).

    ``pattern`` is a shell-style glob matched case-insensitively against the
    file name.
    """
    dir_path = Path(directory).expanduser()
    if not dir_path.exists():
        raise file_not_found(str(dir_path))
    if not dir_path.is_dir():
        raise file_not_found(str(dir_path), {"reason": "Path is not a directory"})

    try:
        entries = sorted(dir_path.iterdir())
    except OSError as e:
        raise map_file_system_error(e, str(dir_path)) from e

    pattern = (pattern or "*").lower()
    images = [
        entry
        for entry in entries
        if entry.is_file()
        and is_image_file(entry)
        and fnmatch.fnmatchcase(entry.name.lower(), pattern)
    ]
    if max_files is not None and max_files > 0:
        images = images[:max_files]
    return images


def _exif_value(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip("\x00")
    if isinstance(value, str | int | float | bool) or value is None:
        return value
    if isinstance(value, tuple | list):
        return [_exif_value(item) for item in value]
    return str(value)


def _read_exif(image: Image.Image) -> dict[str, Any]:
    exif: dict[str, Any] = {}
    for tag_id, value in image.getexif().items():
        name = ExifTags.TAGS.get(tag_id, str(tag_id))
        exif[name] = _exif_value(value)
    return exif


def read_image_metadata(path: Path | str, detailed: bool = True) -> ImageMetadata:
    """Read file metadata, plus pixel dimensions and EXIF when ``detailed``.

    An image Pillow cannot decode still gets file-level metadata with zero
    dimensions and empty EXIF.
    """
    file_path = Path(path)
    try:
        size = file_path.stat().st_size
    except OSError as e:
        raise map_file_system_error(e, str(file_path)) from e

    metadata = ImageMetadata(
        filename=file_path.name,
        size=size,
        format=file_path.suffix.lower().lstrip("."),
    )
    if not detailed:
        return metadata

    try:
        with Image.open(file_path) as image:
            width, height = image.size
            exif = _read_exif(image)
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(
            "image_metadata_unreadable",
            extra={"image.path": str(file_path), "error.message": str(e)},
        )
        return metadata

    return ImageMetadata(
        filename=metadata.filename,
        size=metadata.size,
        dimensions=ImageDimensions(width=width, height=height),
        format=metadata.format,
        exif=exif,
    )
