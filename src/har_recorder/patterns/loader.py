"""Pattern loading utilities for redaction.

This module provides functions to load redaction rules from JSON files and to
compile the pattern definitions they contain.
"""

from __future__ import annotations

import json
import logging
import re
from collections import OrderedDict
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)

# Maximum number of cache entries to prevent unbounded growth
_MAX_CACHE_SIZE = 20

# LRU cache for loaded rule sets (OrderedDict for LRU behavior)
_pattern_cache: OrderedDict[str, Any] = OrderedDict()

# Delimiters accepted for /regex/flags style patterns
_DELIMITERS = ("/", "#", "~")

# Single-letter modifiers of delimited patterns
_INLINE_FLAGS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


def _cache_get(key: str) -> Any | None:
    """Get value from cache, moving it to end (most recently used)."""
    if key in _pattern_cache:
        _pattern_cache.move_to_end(key)
        return _pattern_cache[key]
    return None


def _cache_set(key: str, value: Any) -> None:
    """Set value in cache with LRU eviction."""
    if key in _pattern_cache:
        _pattern_cache.move_to_end(key)
    _pattern_cache[key] = value
    while len(_pattern_cache) > _MAX_CACHE_SIZE:
        evicted_key = next(iter(_pattern_cache))
        _pattern_cache.pop(evicted_key)
        _LOGGER.debug("Pattern cache evicted: %s", evicted_key)


class PatternLoadError(Exception):
    """Raised when pattern or configuration files cannot be loaded."""


def _get_builtin_path(filename: str) -> Path:
    """Get path to a built-in pattern file.

    Args:
        filename: Name of the pattern file (e.g., "redactions.json")

    Returns:
        Path to the built-in pattern file
    """
    return Path(__file__).parent / filename


def _normalize_path(path: Path | str | None) -> str | None:
    """Normalize a path to a string for cache key consistency."""
    if path is None:
        return None
    return str(Path(path).resolve())


def load_json_file(path: Path | str) -> dict[str, Any]:
    """Load a JSON file with error handling.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed JSON data

    Raises:
        PatternLoadError: If file cannot be read or parsed, or is not a JSON object
    """
    path_str = str(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise PatternLoadError(f"Pattern file not found: {path_str}") from e
    except PermissionError as e:
        raise PatternLoadError(f"Permission denied reading pattern file: {path_str}") from e
    except json.JSONDecodeError as e:
        raise PatternLoadError(f"Invalid JSON in pattern file {path_str}: {e}") from e
    except UnicodeDecodeError as e:
        raise PatternLoadError(f"Pattern file is not valid UTF-8: {path_str}") from e
    except OSError as e:
        raise PatternLoadError(f"Unable to read pattern file {path_str}: {e.strerror or e}") from e

    if not isinstance(data, dict):
        raise PatternLoadError(f"Pattern file must contain a JSON object: {path_str}")
    return data


def _extract_redactions(data: dict[str, Any], source: str) -> OrderedDict[str, Any]:
    """Pull the path -> pattern mapping out of a loaded rules file."""
    redactions = data.get("redactions", {})
    if not isinstance(redactions, dict):
        raise PatternLoadError(f"'redactions' must be an object in {source}")

    rules: OrderedDict[str, Any] = OrderedDict()
    for path, pattern in redactions.items():
        if path.startswith("_"):
            continue
        rules[path] = pattern
    return rules


def load_redaction_rules(
    custom_path: Path | str | None = None,
    *,
    include_builtin: bool = True,
) -> OrderedDict[str, Any]:
    """Load redaction rules as an ordered mapping of path -> pattern definition.

    Custom rules are merged after the built-in ones; a custom rule for a path
    that already exists replaces the built-in pattern in place.

    Args:
        custom_path: Optional path to a custom rules file to merge
        include_builtin: If False, only the custom rules are returned

    Returns:
        Ordered mapping of path string to pattern definition

    Raises:
        PatternLoadError: If a rules file cannot be loaded
    """
    normalized = _normalize_path(custom_path)
    cache_key = f"redactions:{normalized}:{include_builtin}"
    cached = _cache_get(cache_key)
    if cached is not None:
        return OrderedDict(cached)

    rules: OrderedDict[str, Any] = OrderedDict()
    if include_builtin:
        builtin_path = _get_builtin_path("redactions.json")
        rules.update(_extract_redactions(load_json_file(builtin_path), str(builtin_path)))

    if custom_path:
        rules.update(_extract_redactions(load_json_file(custom_path), str(custom_path)))

    _cache_set(cache_key, rules)
    return OrderedDict(rules)


def clear_pattern_cache() -> None:
    """Clear the pattern cache.

    Useful for testing or when rule files have been modified.
    """
    _pattern_cache.clear()


def _split_delimited(pattern: str) -> tuple[str, str] | None:
    """Split a ``/regex/flags`` string into its regex and flag letters.

    Returns:
        Tuple of (regex, flags), or None if the string is not delimited
    """
    if len(pattern) < 2 or pattern[0] not in _DELIMITERS:
        return None
    end = pattern.rfind(pattern[0])
    if end <= 0:
        return None
    flags = pattern[end + 1 :]
    if any(flag not in _INLINE_FLAGS and flag != "u" for flag in flags):
        return None
    return pattern[1:end], flags


def compile_pattern(pattern_def: str | dict[str, Any] | re.Pattern[str]) -> re.Pattern[str]:
    """Compile a pattern definition into a regex.

    Accepts three forms:
        - ``"/regex/i"``: delimited pattern with single-letter modifiers
        - ``"(?i)regex"``: plain Python regex
        - ``{"regex": "...", "flags": ["IGNORECASE"]}``: pattern object

    Args:
        pattern_def: Pattern definition

    Returns:
        Compiled regex pattern

    Raises:
        re.error: If regex pattern is invalid
    """
    if isinstance(pattern_def, re.Pattern):
        return pattern_def

    if isinstance(pattern_def, str):
        delimited = _split_delimited(pattern_def)
        if delimited is None:
            return re.compile(pattern_def)
        regex, letters = delimited
        str_flags = 0
        for letter in letters:
            str_flags |= _INLINE_FLAGS.get(letter, 0)
        return re.compile(regex, str_flags)

    regex = pattern_def["regex"]
    flags = 0

    if "flags" in pattern_def:
        for flag_name in pattern_def["flags"]:
            flag = getattr(re, flag_name, None)
            if flag is not None and isinstance(flag, re.RegexFlag):
                flags |= flag
            else:
                _LOGGER.warning("Unknown regex flag: %s", flag_name)

    return re.compile(regex, flags)
