"""Shared test fixtures and factories."""

from pathlib import Path

import pytest
from PIL import Image

from gemini_vision.analysis.types import ImageMetadata
from gemini_vision.config.models import Settings

_ENV_KEYS = (
    "GEMINI_MODEL",
    "GEMINI_TEMPERATURE",
    "GEMINI_MAX_TOKENS",
    "GEMINI_LANGUAGE",
    "MAX_IMAGE_SIZE",
    "ANALYSIS_TIMEOUT",
    "MAX_CONCURRENT_REQUESTS",
    "GEMINI_CLI_LAUNCHER",
    "GEMINI_VISION_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path):
    """Keep the developer's environment and config files out of tests."""
    from gemini_vision.config.paths import get_home

    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GEMINI_VISION_HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    get_home.cache_clear()
    yield
    get_home.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def png_image(tmp_path: Path) -> Path:
    """A small real PNG image."""
    path = tmp_path / "images" / "sample.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (32, 16), color=(200, 30, 30)).save(path)
    return path


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    """Directory with three images and one non-image file."""
    directory = tmp_path / "gallery"
    directory.mkdir()
    for name, fmt in (("a.png", "PNG"), ("b.JPG", "JPEG"), ("c.gif", "GIF")):
        Image.new("RGB", (8, 8)).save(directory / name, format=fmt)
    (directory / "notes.txt").write_text("not an image")
    return directory


@pytest.fixture
def metadata_reader():
    """Metadata reader that does not touch the filesystem."""

    def _read(path: Path, detailed: bool) -> ImageMetadata:
        return ImageMetadata(filename=Path(path).name, size=123, format="png")

    return _read


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})
