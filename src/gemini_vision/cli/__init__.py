"""Command line interface."""

from gemini_vision.cli.app import app

__all__ = ["app"]
