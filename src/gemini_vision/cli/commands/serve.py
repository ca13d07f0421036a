"""MCP server command."""

from pathlib import Path
from typing import Annotated

import typer


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        log_to_file: Annotated[
            bool,
            typer.Option(
                "--log-file/--no-log-file",
                help="Also write JSONL logs under the gemini-vision home",
            ),
        ] = False,
    ) -> None:
        """Start the MCP server on stdio."""
        import asyncio
        import logging

        from gemini_vision.config import load_settings
        from gemini_vision.logging import configure_logging
        from gemini_vision.server import ImageAnalysisServer

        configure_logging(use_rich=True, log_to_file=log_to_file)
        logger = logging.getLogger(__name__)

        settings = load_settings(config)
        server = ImageAnalysisServer(settings)

        try:
            asyncio.run(server.run())
        except KeyboardInterrupt:
            logger.info("server_stopped")
