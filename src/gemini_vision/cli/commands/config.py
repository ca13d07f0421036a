"""Configuration management commands."""

from pathlib import Path
from typing import Annotated

import typer

from gemini_vision.cli.console import console, error, success, warning


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        ctx: typer.Context,
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: search standard locations)",
            ),
        ] = None,
    ) -> None:
        """Show or validate the effective settings."""
        if action is None:
            typer.echo(ctx.get_help())
            raise typer.Exit(0)

        if action not in ("show", "validate"):
            error(f"Unknown action: {action}")
            console.print("Valid actions: show, validate")
            raise typer.Exit(1)

        from pydantic import ValidationError
        from rich.table import Table

        from gemini_vision.config import load_settings, validate_environment

        try:
            settings = load_settings(path.expanduser() if path else None)
        except FileNotFoundError as e:
            error(str(e))
            raise typer.Exit(1) from None
        except ValidationError as e:
            error("Configuration validation failed:")
            console.print()
            for err in e.errors():
                loc = ".".join(str(x) for x in err["loc"])
                console.print(f"  [yellow]{loc}[/yellow]: {err['msg']}")
            raise typer.Exit(1) from None
        except ValueError as e:
            error(f"Error loading config: {e}")
            raise typer.Exit(1) from None

        if action == "show":
            table = Table(title="Effective Settings")
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="green")
            for section, values in settings.summary().items():
                for key, value in values.items():
                    table.add_row(f"{section}.{key}", str(value))
            console.print(table)
            return

        problems = validate_environment()
        if problems:
            warning("Environment problems:")
            for problem in problems:
                console.print(f"  [yellow]-[/yellow] {problem}")
            raise typer.Exit(1)
        success("Configuration is valid!")
