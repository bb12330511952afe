"""CLI for har-recorder.

This module provides a Typer-based CLI for replaying and redacting HAR files.

Requires the 'cli' optional dependency: pip install har-recorder[cli]
"""

from __future__ import annotations
