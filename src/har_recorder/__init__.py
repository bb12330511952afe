"""HAR recording, redaction and replay library.

This library provides tools for:
- Encoding an HTTP request/response pair as a HAR 1.2 document
- Redacting sensitive values with path-based rules before writing
- Writing HAR files atomically (temp file then rename)
- Replaying captured requests against a live or different target

Core functionality has ZERO dependencies (only stdlib).
Optional features require: typer (cli).

Example usage:
    from har_recorder import HarRecorder, RecorderConfig
    from har_recorder.recording import CapturedRequest, CapturedResponse

    recorder = HarRecorder(RecorderConfig(output_dir="logs/har"))
    recorder.record(request, response, started_at, ended_at)

    # Replay (dry run by default)
    from har_recorder.replay import HarReplayer, ReplayOptions, load_har_entries
    result = HarReplayer().replay(load_har_entries("capture.har"), ReplayOptions())
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export public API for convenience
from har_recorder.config import RecorderConfig, load_recorder_config
from har_recorder.recording import (
    HarEncoder,
    HarRecorder,
    HarRecorderMiddleware,
    HarWriteError,
    HarWriter,
)
from har_recorder.redaction import HarRedactor
from har_recorder.replay import HarReplayer, ReplayOptions

__all__ = [
    "__version__",
    "RecorderConfig",
    "load_recorder_config",
    "HarEncoder",
    "HarRedactor",
    "HarWriter",
    "HarWriteError",
    "HarRecorder",
    "HarRecorderMiddleware",
    "HarReplayer",
    "ReplayOptions",
]
