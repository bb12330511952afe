"""Crash-safe HAR file writing.

Documents are serialized to a uniquely named temporary file in the output
directory and then renamed over the final name, so a half-written file is
never visible under the final name. Concurrent writers share the directory
but never a temporary name.
"""

from __future__ import annotations

import itertools
import json
import logging
import os
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from har_recorder.config import DEFAULT_OUTPUT_DIR, RecorderConfig

_LOGGER = logging.getLogger(__name__)

# Process-wide counter so {uniqid} differs between calls in the same tick
_UNIQID_COUNTER = itertools.count()


class HarWriteError(OSError):
    """Raised when a HAR file cannot be written."""

    def __init__(self, message: str, path: str | Path = "") -> None:
        self.path = str(path)
        super().__init__(message)


def uniqid() -> str:
    """Return a token unique within this process (time-based hex plus counter)."""
    return f"{time.time_ns():x}.{os.getpid():x}{next(_UNIQID_COUNTER):06x}"


def build_filename(pattern: str, now: datetime | None = None) -> str:
    """Substitute filename placeholders.

    Supported placeholders:
        - ``{date}``: local time as ``YYYYmmdd-HHMMSS``
        - ``{uniqid}``: process-unique token
        - ``{random}``: random UUID4

    Unknown placeholders are left untouched. Directory components are
    dropped so the name always lands inside the output directory.

    Args:
        pattern: Filename template
        now: Time used for ``{date}`` (default: now)

    Returns:
        Filename

    Example:
        >>> build_filename("capture-{date}.har", datetime(2024, 1, 2, 3, 4, 5))
        'capture-20240102-030405.har'
    """
    replacements = {
        "{date}": lambda: (now or datetime.now()).strftime("%Y%m%d-%H%M%S"),
        "{uniqid}": uniqid,
        "{random}": lambda: str(uuid.uuid4()),
    }

    result = pattern
    for placeholder, factory in replacements.items():
        if placeholder in result:
            result = result.replace(placeholder, factory())

    return Path(result.replace("\\", "/")).name


def _ensure_directory(directory: Path) -> None:
    """Create the output directory, tolerating concurrent creation."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        if not directory.is_dir():
            raise HarWriteError(f"Unable to create HAR directory: {directory}", directory) from e


def _remove_quietly(path: Path) -> None:
    """Best-effort removal of a temporary file."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        _LOGGER.warning("Failed to remove temporary HAR file %s: %s", path, e)


def dumps_har(har: dict[str, Any]) -> str:
    """Serialize a HAR document as pretty-printed JSON with unicode left unescaped."""
    return json.dumps(har, indent=2, ensure_ascii=False)


class HarWriter:
    """Write HAR documents atomically into an output directory.

    Args:
        config: Recorder configuration (only ``output_dir`` is used)
        output_dir: Explicit output directory, overriding the config
    """

    def __init__(self, config: RecorderConfig | None = None, output_dir: str | Path | None = None) -> None:
        if output_dir is None:
            output_dir = config.output_dir if config is not None else DEFAULT_OUTPUT_DIR
        self.output_dir = Path(output_dir)

    def write(self, har: dict[str, Any], filename: str) -> Path:
        """Write ``har`` to ``<output_dir>/<filename>``.

        Args:
            har: HAR document
            filename: Final file name

        Returns:
            Path of the written file

        Raises:
            HarWriteError: If the name is not a plain file name, or the
                directory, temporary file or rename fails
        """
        if filename in ("", ".", "..") or Path(filename).name != filename:
            raise HarWriteError(f"Invalid HAR file name: {filename!r}", self.output_dir / filename)

        _ensure_directory(self.output_dir)

        final_path = self.output_dir / filename
        tmp_path = final_path.with_name(f"{final_path.name}.{uuid.uuid4().hex}.tmp")

        try:
            encoded = dumps_har(har)
        except (TypeError, ValueError) as e:
            raise HarWriteError(f"Failed to encode HAR JSON: {e}", final_path) from e

        try:
            with open(tmp_path, "x", encoding="utf-8") as f:
                f.write(encoded)
        except OSError as e:
            _remove_quietly(tmp_path)
            raise HarWriteError(f"Unable to write HAR file: {tmp_path}", tmp_path) from e

        try:
            os.replace(tmp_path, final_path)
        except OSError as e:
            _remove_quietly(tmp_path)
            raise HarWriteError(f"Unable to finalize HAR file: {final_path}", final_path) from e

        _LOGGER.info("HAR written to: %s", final_path)
        return final_path
