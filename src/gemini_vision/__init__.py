"""gemini-vision: image analysis for agents through the Gemini CLI."""

__version__ = "0.1.0"
