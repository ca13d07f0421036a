"""CLI command modules."""

from gemini_vision.cli.commands import analyze, config, serve

__all__ = ["analyze", "config", "serve"]
