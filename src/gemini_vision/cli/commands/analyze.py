"""One-off analysis commands: analyze and batch."""

from pathlib import Path
from typing import Annotated

import typer

from gemini_vision.cli.console import console, dim, error, success, warning


def register(app: typer.Typer) -> None:
    """Register the analyze and batch commands."""

    @app.command()
    def analyze(
        image: Annotated[Path, typer.Argument(help="Image file to analyze")],
        analysis_type: Annotated[
            str,
            typer.Option(
                "--type",
                "-t",
                help="describe, ocr, classify, or detect_objects",
            ),
        ] = "describe",
        detail: Annotated[
            str,
            typer.Option("--detail", "-d", help="brief, standard, or detailed"),
        ] = "standard",
        language: Annotated[
            str | None,
            typer.Option("--language", "-l", help="ja, en, or auto"),
        ] = None,
        confidence: Annotated[
            bool,
            typer.Option("--confidence", help="Ask for and parse a confidence score"),
        ] = False,
        colors: Annotated[
            bool,
            typer.Option("--colors", help="Ask for and parse dominant colors"),
        ] = False,
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Analyze a single image and print the result as JSON."""
        import asyncio

        from gemini_vision.analysis import AnalysisError, AnalysisRequest, GeminiClient
        from gemini_vision.files import validate_image_file
        from gemini_vision.logging import configure_logging

        configure_logging(level="WARNING")
        _check_choices(analysis_type, detail, language)
        settings = _load_settings(config)
        client = GeminiClient.from_settings(settings)

        try:
            path = validate_image_file(
                image, settings.performance.max_image_size_bytes
            )
            request = AnalysisRequest(
                input_path=path,
                analysis_type=analysis_type,  # type: ignore[arg-type]
                detail_level=detail,  # type: ignore[arg-type]
                include_confidence=confidence,
                extract_colors=colors,
                include_metadata=True,
                language=language,  # type: ignore[arg-type]
            )
            result = asyncio.run(client.analyze_image(request))
        except AnalysisError as e:
            error(f"{e.code.value}: {e.message}")
            raise typer.Exit(1) from None

        console.print_json(data=result.to_dict())

    @app.command()
    def batch(
        directory: Annotated[
            Path, typer.Argument(help="Directory containing images")
        ],
        pattern: Annotated[
            str,
            typer.Option("--pattern", "-p", help="File name glob, e.g. '*.png'"),
        ] = "*",
        max_files: Annotated[
            int | None,
            typer.Option("--max-files", "-n", help="Maximum number of images"),
        ] = None,
        analysis_type: Annotated[
            str,
            typer.Option(
                "--type",
                "-t",
                help="describe, ocr, classify, or detect_objects",
            ),
        ] = "describe",
        concurrency: Annotated[
            int | None,
            typer.Option(
                "--concurrency",
                help="Images analyzed at once (default: from settings)",
            ),
        ] = None,
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Analyze every image in a directory."""
        import asyncio

        from rich.markup import escape
        from rich.table import Table

        from gemini_vision.analysis import AnalysisError, AnalysisRequest, GeminiClient
        from gemini_vision.files import list_image_files
        from gemini_vision.logging import configure_logging

        configure_logging(level="WARNING")
        _check_choices(analysis_type, "standard", None)
        if concurrency is not None and concurrency <= 0:
            error("--concurrency must be positive")
            raise typer.Exit(1)

        settings = _load_settings(config)
        client = GeminiClient.from_settings(settings)

        try:
            paths = list_image_files(
                directory,
                pattern,
                max_files or settings.performance.max_batch_size,
            )
        except AnalysisError as e:
            error(f"{e.code.value}: {e.message}")
            raise typer.Exit(1) from None

        if not paths:
            warning(f"No images matching '{pattern}' in {directory}")
            raise typer.Exit(1)

        template = AnalysisRequest(
            input_path=directory,
            analysis_type=analysis_type,  # type: ignore[arg-type]
            include_metadata=True,
        )
        outcomes = asyncio.run(
            client.batch_analyze_detailed(paths, template, concurrency=concurrency)
        )

        table = Table(title=f"Batch results ({directory})")
        table.add_column("File", style="cyan")
        table.add_column("Status")
        table.add_column("Time (ms)", justify="right")
        table.add_column("Summary")
        for outcome in outcomes:
            if outcome.result is not None:
                summary = outcome.result.description.replace("\n", " ")
                table.add_row(
                    outcome.path.name,
                    "[green]ok[/green]",
                    str(outcome.result.processing_time_ms),
                    escape(summary[:80]),
                )
            elif outcome.error is not None:
                table.add_row(
                    outcome.path.name,
                    f"[red]{outcome.error.code.value}[/red]",
                    "-",
                    escape(outcome.error.message),
                )
        console.print(table)

        succeeded = sum(1 for outcome in outcomes if outcome.ok)
        if succeeded == 0:
            error("No images were analyzed successfully")
            raise typer.Exit(1)
        success(f"Analyzed {succeeded}/{len(outcomes)} images")
        if succeeded < len(outcomes):
            dim("Failed items are listed above")


def _check_choices(analysis_type: str, detail: str, language: str | None) -> None:
    from gemini_vision.analysis.types import (
        ANALYSIS_TYPES,
        DETAIL_LEVELS,
        SUPPORTED_LANGUAGES,
    )

    checks = [
        ("--type", analysis_type, ANALYSIS_TYPES),
        ("--detail", detail, DETAIL_LEVELS),
    ]
    if language is not None:
        checks.append(("--language", language, SUPPORTED_LANGUAGES))
    for option, value, allowed in checks:
        if value not in allowed:
            error(f"Invalid {option} '{value}'. Valid: {', '.join(allowed)}")
            raise typer.Exit(1)


def _load_settings(path: Path | None):
    from pydantic import ValidationError

    from gemini_vision.config import load_settings

    try:
        return load_settings(path)
    except FileNotFoundError as e:
        error(str(e))
        raise typer.Exit(1) from None
    except ValidationError as e:
        error("Configuration validation failed:")
        for err in e.errors():
            loc = ".".join(str(x) for x in err["loc"])
            console.print(f"  [yellow]{loc}[/yellow]: {err['msg']}")
        raise typer.Exit(1) from None
    except ValueError as e:
        error(f"Error loading config: {e}")
        raise typer.Exit(1) from None
