"""Main CLI application."""

import typer

from gemini_vision.cli.commands import analyze, config, serve

app = typer.Typer(
    name="gemini-vision",
    help="Image analysis through the Gemini CLI, served over MCP",
    no_args_is_help=True,
)

serve.register(app)
analyze.register(app)
config.register(app)


if __name__ == "__main__":
    app()
