"""Path-based redaction for HAR documents.

Exports:
    - HarRedactor: Apply an ordered rule set to a HAR document
    - RedactionRule: One parsed (path, pattern) pair
    - RedactionOutcome: Why a rule did or did not fire at a node
    - redact_path: Low-level walk-and-redact over any JSON-like value
"""

from __future__ import annotations

from har_recorder.redaction.redactor import (
    REDACTED,
    HarRedactor,
    RedactionOutcome,
    RedactionRule,
    build_rules,
    redact_path,
)

__all__ = [
    "REDACTED",
    "HarRedactor",
    "RedactionOutcome",
    "RedactionRule",
    "build_rules",
    "redact_path",
]
