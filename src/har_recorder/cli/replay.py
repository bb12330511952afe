"""Replay command for har-recorder CLI - re-issues requests from a HAR file."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from har_recorder.replay import (
    EntryOutcome,
    HarFileError,
    HarReplayer,
    OutcomeKind,
    ReplayConfigError,
    ReplayOptions,
    load_har_entries,
)


def _echo_outcome(outcome: EntryOutcome) -> None:
    """Print one outcome line (stdout for results, stderr for problems)."""
    if outcome.kind in (OutcomeKind.DRY_RUN, OutcomeKind.SENT):
        typer.echo(outcome.describe())
    elif outcome.kind in (OutcomeKind.FAILED, OutcomeKind.SKIPPED_INVALID_URL):
        typer.echo(outcome.describe(), err=True)


def replay(
    har: Annotated[
        Path,
        typer.Argument(help="Path to a HAR file to replay"),
    ],
    base_url: Annotated[
        str | None,
        typer.Option("--base-url", help="Override scheme/host (and optional path) for all requests"),
    ] = None,
    send: Annotated[
        bool,
        typer.Option("--send", help="Actually send the requests (default is a dry run)"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the requests without sending them (default)"),
    ] = False,
    methods: Annotated[
        str,
        typer.Option("--methods", "-m", help="Comma-separated HTTP methods to replay"),
    ] = "GET",
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Limit the number of entries to replay (0 = all)"),
    ] = 0,
    sleep: Annotated[
        int,
        typer.Option("--sleep", help="Milliseconds to wait between requests"),
    ] = 0,
    timeout: Annotated[
        float,
        typer.Option("--timeout", help="Request timeout in seconds"),
    ] = 30.0,
    insecure: Annotated[
        bool,
        typer.Option("--insecure", "-k", help="Accept self-signed TLS certificates"),
    ] = False,
) -> None:
    """Replay requests from a HAR file.

    Only GET requests are replayed unless --methods says otherwise, and
    nothing is sent without --send.

    Args:
        har: HAR file to replay
        base_url: Override scheme/host/port and prefix the path of every URL
        send: Send the requests instead of printing them
        dry_run: Print the requests without sending them
        methods: Comma-separated HTTP methods to replay
        limit: Maximum number of entries to replay (0 = all)
        sleep: Milliseconds to wait after each replayed request
        timeout: Per-request timeout in seconds
        insecure: Skip TLS certificate verification

    Example:
        har-recorder replay capture.har
        har-recorder replay capture.har --methods get,post --limit 10
        har-recorder replay capture.har --send --base-url https://staging.example.com/api
    """
    from har_recorder.replay import UrllibTransport

    options = ReplayOptions(
        base_url=base_url,
        send=send,
        dry_run=dry_run,
        methods=methods,
        limit=limit,
        sleep_ms=sleep,
        timeout=timeout,
    )

    try:
        options.validate()
        entries = load_har_entries(har)
    except ReplayConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except HarFileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    replayer = HarReplayer(transport=UrllibTransport(verify_tls=not insecure))
    result = replayer.replay(entries, options, on_outcome=_echo_outcome)

    typer.echo(result.summary())
