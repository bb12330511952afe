"""Main CLI entry point for har-recorder.

Provides commands for:
- replay: Re-issue captured requests (dry run by default)
- redact: Apply redaction rules to an existing HAR file
"""

from __future__ import annotations

try:
    import typer
except ImportError as e:
    raise ImportError("CLI dependencies not installed. Install with: pip install har-recorder[cli]") from e

from har_recorder.cli.redact import redact
from har_recorder.cli.replay import replay

app = typer.Typer(
    name="har-recorder",
    help="Replay and redact HAR files.",
    no_args_is_help=True,
)

app.command()(replay)
app.command()(redact)


def version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version flag was provided
    """
    if value:
        from har_recorder import __version__

        typer.echo(f"har-recorder {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    r"""Replay and redact HAR files.

    \b
    Examples:
        har-recorder replay capture.har
        har-recorder replay capture.har --send --base-url https://staging.example.com
        har-recorder redact capture.har --rules rules.json
    """


if __name__ == "__main__":
    app()
