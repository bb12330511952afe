"""Recording of HTTP transactions as HAR files.

Exports:
    - HarEncoder: Build a HAR document from a request/response pair
    - CapturedRequest / CapturedResponse: Framework-neutral transaction types
    - HarWriter: Atomic temp-file-then-rename writer
    - HarWriteError: Raised when a HAR file cannot be written
    - build_filename: Expand {date}, {uniqid} and {random} placeholders
    - HarRecorder: encode -> redact -> write for one transaction
    - HarRecorderMiddleware: Best-effort recording around a handler
"""

from __future__ import annotations

from har_recorder.recording.encoder import (
    HAR_VERSION,
    CapturedRequest,
    CapturedResponse,
    HarEncoder,
    RequestLike,
    ResponseLike,
    format_headers,
    format_query,
    read_body,
    truncate_body,
)
from har_recorder.recording.middleware import HarRecorder, HarRecorderMiddleware
from har_recorder.recording.writer import HarWriteError, HarWriter, build_filename, dumps_har

__all__ = [
    # Encoding
    "HAR_VERSION",
    "HarEncoder",
    "CapturedRequest",
    "CapturedResponse",
    "RequestLike",
    "ResponseLike",
    "format_headers",
    "format_query",
    "read_body",
    "truncate_body",
    # Writing
    "HarWriter",
    "HarWriteError",
    "build_filename",
    "dumps_har",
    # Orchestration
    "HarRecorder",
    "HarRecorderMiddleware",
]
