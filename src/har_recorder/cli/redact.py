"""Redact command for har-recorder CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from har_recorder.patterns import PatternLoadError


def _default_output(input_file: Path) -> Path:
    if input_file.suffix == ".har":
        return input_file.with_name(input_file.stem + ".redacted.har")
    return input_file.with_name(input_file.name + ".redacted.har")


def redact(
    input_file: Annotated[
        Path,
        typer.Argument(help="HAR file to redact"),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output filename (default: input.redacted.har)"),
    ] = None,
    rules: Annotated[
        Path | None,
        typer.Option("--rules", "-r", help="JSON file with a 'redactions' path -> pattern object"),
    ] = None,
    no_defaults: Annotated[
        bool,
        typer.Option("--no-defaults", help="Do not apply the built-in redaction rules"),
    ] = False,
) -> None:
    """Apply redaction rules to an existing HAR file.

    Rules map a path (e.g. log.entries[*].request.headers[*]) to a pattern
    (e.g. /^authorization$/i). The result is written atomically.

    Args:
        input_file: HAR file to redact
        output: Output filename (default: input.redacted.har)
        rules: Custom rules file merged over the built-in rules
        no_defaults: Only apply the rules from --rules

    Example:
        har-recorder redact capture.har
        har-recorder redact capture.har --rules rules.json --output clean.har
        har-recorder redact capture.har --rules rules.json --no-defaults
    """
    from har_recorder.recording import HarWriteError, HarWriter
    from har_recorder.redaction import HarRedactor
    from har_recorder.replay import HarFileError, load_har

    if no_defaults and rules is None:
        typer.echo("Error: --no-defaults requires --rules", err=True)
        raise typer.Exit(1)

    output_path = output or _default_output(input_file)

    try:
        redactor = HarRedactor.from_file(rules, include_builtin=not no_defaults)
        har = load_har(input_file)
        redacted = redactor.apply(har)
        written = HarWriter(output_dir=output_path.parent).write(redacted, output_path.name)
    except PatternLoadError as e:
        typer.echo(f"Error: Failed to load rules: {e}", err=True)
        raise typer.Exit(1) from None
    except HarFileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except HarWriteError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Applied {len(redactor.rules)} redaction rule(s) to {input_file}")
    typer.echo(f"  Redacted: {written}")
