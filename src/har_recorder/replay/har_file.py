"""Loading HAR files for replay.

Accepts HAR files produced by this package or by any other tool, as long as
they follow the ``{"log": {"entries": [...]}}`` shape.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)


class HarFileError(ValueError):
    """Raised when a HAR file cannot be used for replay."""

    def __init__(self, message: str, path: str | Path = "") -> None:
        self.path = str(path)
        super().__init__(message)


class HarNotFoundError(HarFileError):
    """The HAR file does not exist."""


class HarReadError(HarFileError):
    """The HAR file exists but cannot be read."""


class HarJsonError(HarFileError):
    """The HAR file is not valid JSON."""


class HarNoEntriesError(HarFileError):
    """The HAR file has no entries to replay."""


def load_har(path: str | Path) -> dict[str, Any]:
    """Read and parse a HAR file.

    Args:
        path: HAR file path

    Returns:
        Parsed document

    Raises:
        HarNotFoundError: If the file does not exist
        HarReadError: If the file cannot be read
        HarJsonError: If the file is not valid JSON
    """
    path = Path(path)
    display = str(path) if str(path) not in ("", ".") else "(empty)"
    if str(path) in ("", ".") or not path.is_file():
        raise HarNotFoundError(f"HAR file not found: {display}", path)

    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise HarReadError(f"Failed to read HAR file: {path} ({e})", path) from e

    try:
        data = json.loads(contents)
    except json.JSONDecodeError as e:
        raise HarJsonError(f"Invalid HAR JSON: {e.msg} at line {e.lineno}", path) from e

    if not isinstance(data, dict):
        raise HarJsonError("Invalid HAR JSON: top level must be an object", path)
    return data


def get_entries(har: dict[str, Any]) -> list[Any]:
    """Return ``log.entries`` or an empty list if missing or malformed."""
    log = har.get("log")
    if not isinstance(log, dict):
        return []
    entries = log.get("entries")
    if not isinstance(entries, list):
        return []
    return entries


def load_har_entries(path: str | Path) -> list[Any]:
    """Load the entries of a HAR file for replay.

    Raises:
        HarFileError: Any of the load errors, or HarNoEntriesError if empty
    """
    entries = get_entries(load_har(path))
    if not entries:
        raise HarNoEntriesError("No HAR entries found to replay.", path)
    _LOGGER.debug("Loaded %d HAR entries from %s", len(entries), path)
    return entries
