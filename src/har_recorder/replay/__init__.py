"""Replay of captured HAR requests against a live or different target.

Exports:
    - HarReplayer: Sequential replay driver
    - ReplayOptions / ReplayResult / EntryOutcome / OutcomeKind: Options and reporting
    - ReplayConfigError: Invalid option combination
    - load_har_entries: Load entries from a HAR file
    - HarFileError (and subclasses): HAR input errors
    - UrllibTransport / HttpTransport / RequestOptions: Transport layer
"""

from __future__ import annotations

from har_recorder.replay.har_file import (
    HarFileError,
    HarJsonError,
    HarNoEntriesError,
    HarNotFoundError,
    HarReadError,
    get_entries,
    load_har,
    load_har_entries,
)
from har_recorder.replay.replayer import (
    EntryOutcome,
    HarReplayer,
    OutcomeKind,
    ReplayConfigError,
    ReplayOptions,
    ReplayResult,
    apply_base_url,
    build_request_options,
    is_replayable_url,
    normalize_headers,
    parse_methods,
)
from har_recorder.replay.transport import HttpTransport, RequestOptions, UrllibTransport

__all__ = [
    # Replay driver
    "HarReplayer",
    "ReplayOptions",
    "ReplayResult",
    "EntryOutcome",
    "OutcomeKind",
    "ReplayConfigError",
    "apply_base_url",
    "build_request_options",
    "is_replayable_url",
    "normalize_headers",
    "parse_methods",
    # HAR input
    "load_har",
    "load_har_entries",
    "get_entries",
    "HarFileError",
    "HarNotFoundError",
    "HarReadError",
    "HarJsonError",
    "HarNoEntriesError",
    # Transport
    "HttpTransport",
    "RequestOptions",
    "UrllibTransport",
]
