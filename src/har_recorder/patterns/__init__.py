"""Path parsing and pattern loading utilities for redaction.

This module provides:
- The path mini-language used to address nodes in a HAR document
- Loading of redaction rules from JSON (built-in defaults plus custom files)
- Compilation of ``/regex/flags`` style pattern definitions
"""

from __future__ import annotations

from har_recorder.patterns.loader import (
    PatternLoadError,
    clear_pattern_cache,
    compile_pattern,
    load_json_file,
    load_redaction_rules,
)
from har_recorder.patterns.paths import (
    PathToken,
    TokenKind,
    format_path,
    parse_path,
)

__all__ = [
    # Path language
    "PathToken",
    "TokenKind",
    "parse_path",
    "format_path",
    # Pattern loading
    "load_json_file",
    "load_redaction_rules",
    "clear_pattern_cache",
    "compile_pattern",
    "PatternLoadError",
]
