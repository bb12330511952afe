"""Recorder configuration.

Configuration is a plain dataclass. It can be built in code or loaded from a
JSON file whose keys follow the original plugin layout::

    {
        "HarRecorder": {
            "enabled": true,
            "outputDir": "logs/har",
            "filenamePattern": "har-{date}-{uniqid}.har",
            "redactions": {"log.entries[*].request.headers[*]": "/^authorization$/i"},
            "maxBodySize": 1048576
        }
    }
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from har_recorder import __version__
from har_recorder.patterns import PatternLoadError, load_json_file, load_redaction_rules

_LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "logs/har"
DEFAULT_FILENAME_PATTERN = "har-{date}-{uniqid}.har"
DEFAULT_MAX_BODY_SIZE = 1024 * 1024

# Config file key -> dataclass field
_KEY_ALIASES = {
    "enabled": "enabled",
    "outputDir": "output_dir",
    "output_dir": "output_dir",
    "filenamePattern": "filename_pattern",
    "filename_pattern": "filename_pattern",
    "redactions": "redactions",
    "maxBodySize": "max_body_size",
    "max_body_size": "max_body_size",
    "creatorName": "creator_name",
    "creator_name": "creator_name",
    "creatorVersion": "creator_version",
    "creator_version": "creator_version",
}


def _default_redactions() -> OrderedDict[str, Any]:
    return load_redaction_rules()


@dataclass
class RecorderConfig:
    """Settings shared by the encoder, redactor and writer.

    Attributes:
        enabled: If False, the middleware passes requests through untouched
        output_dir: Directory HAR files are written to
        filename_pattern: Template with {date}, {uniqid} and {random} placeholders
        redactions: Ordered mapping of path -> pattern
        max_body_size: Maximum bytes of body text kept per request/response
        creator_name: ``log.creator.name`` of produced documents
        creator_version: ``log.creator.version`` of produced documents
    """

    enabled: bool = True
    output_dir: str | Path = DEFAULT_OUTPUT_DIR
    filename_pattern: str = DEFAULT_FILENAME_PATTERN
    redactions: dict[str, Any] = field(default_factory=_default_redactions)
    max_body_size: int = DEFAULT_MAX_BODY_SIZE
    creator_name: str = "har-recorder"
    creator_version: str = __version__

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> RecorderConfig:
        """Build a config from a mapping, overlaying it on the defaults.

        Args:
            data: Settings, optionally nested under a "HarRecorder" key

        Returns:
            RecorderConfig instance

        Raises:
            PatternLoadError: If a setting has the wrong type
        """
        if isinstance(data.get("HarRecorder"), dict):
            data = data["HarRecorder"]

        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key)
            if name is None:
                _LOGGER.debug("Ignoring unknown config key: %s", key)
                continue
            values[name] = value

        if "redactions" in values and not isinstance(values["redactions"], dict):
            raise PatternLoadError("'redactions' must be an object mapping paths to patterns")
        if "max_body_size" in values:
            try:
                values["max_body_size"] = int(values["max_body_size"])
            except (TypeError, ValueError) as e:
                value = values["max_body_size"]
                raise PatternLoadError(f"'maxBodySize' must be an integer, got {value!r}") from e

        return cls(**values)


def load_recorder_config(path: Path | str | None = None) -> RecorderConfig:
    """Load recorder configuration from a JSON file.

    Args:
        path: Config file path (None returns the defaults)

    Returns:
        RecorderConfig instance

    Raises:
        PatternLoadError: If the file cannot be loaded
    """
    if path is None:
        return RecorderConfig()
    return RecorderConfig.from_mapping(load_json_file(path))
