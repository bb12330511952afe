"""Path-based redaction of HAR documents.

Each rule pairs a path (see ``har_recorder.patterns.paths``) with a regex.
The path selects nodes in the document; at each selected node:

- a string has every match of the regex replaced with ``[REDACTED]``;
- a ``{"name": ..., "value": ...}`` pair (header or query parameter) has its
  whole ``value`` replaced with ``[REDACTED]`` when the regex fully matches
  its ``name``.

So ``log.entries[*].request.headers[*].value`` with ``/Bearer\\s+\\S+/i``
scrubs token text inside header values, while
``log.entries[*].request.headers[*]`` with ``/^(authorization|cookie)$/i``
scrubs the value of every header with one of those names.

Redaction never raises for a bad rule: unparseable paths and invalid regexes
drop the rule, and paths that do not fit the document are no-ops.
"""

from __future__ import annotations

import copy
import enum
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from har_recorder.patterns import (
    PathToken,
    TokenKind,
    compile_pattern,
    load_redaction_rules,
    parse_path,
)

_LOGGER = logging.getLogger(__name__)

REDACTED = "[REDACTED]"


class RedactionOutcome(enum.Enum):
    """What happened when a rule reached (or failed to reach) a node."""

    APPLIED = "applied"
    NO_MATCH = "no_match"
    SKIPPED_TYPE_MISMATCH = "skipped_type_mismatch"
    SKIPPED_NOT_FOUND = "skipped_not_found"


@dataclass(frozen=True)
class RedactionRule:
    """A parsed path and compiled pattern.

    Attributes:
        path: Original path expression
        tokens: Parsed path tokens (never empty)
        pattern: Compiled regex
    """

    path: str
    tokens: tuple[PathToken, ...]
    pattern: re.Pattern[str]

    @classmethod
    def from_config(cls, path: str, pattern_def: Any) -> RedactionRule | None:
        """Build a rule from a config entry.

        Args:
            path: Path expression
            pattern_def: Pattern definition accepted by ``compile_pattern``

        Returns:
            The rule, or None if the path or pattern is unusable
        """
        tokens = parse_path(str(path))
        if not tokens:
            _LOGGER.debug("Ignoring redaction rule with unparseable path: %r", path)
            return None

        try:
            pattern = compile_pattern(pattern_def)
        except (re.error, KeyError, TypeError) as e:
            _LOGGER.warning("Ignoring redaction rule for %s: invalid pattern %r (%s)", path, pattern_def, e)
            return None

        return cls(path=str(path), tokens=tokens, pattern=pattern)


def _redact_leaf(node: Any, pattern: re.Pattern[str], outcomes: list[RedactionOutcome]) -> Any:
    """Apply a pattern at the end of a path."""
    if isinstance(node, str):
        redacted, count = pattern.subn(REDACTED, node)
        outcomes.append(RedactionOutcome.APPLIED if count else RedactionOutcome.NO_MATCH)
        return redacted

    if isinstance(node, dict) and isinstance(node.get("value"), str) and isinstance(node.get("name"), str):
        if pattern.fullmatch(node["name"]):
            node["value"] = REDACTED
            outcomes.append(RedactionOutcome.APPLIED)
        else:
            outcomes.append(RedactionOutcome.NO_MATCH)
        return node

    outcomes.append(RedactionOutcome.SKIPPED_TYPE_MISMATCH)
    return node


def redact_path(
    node: Any,
    tokens: tuple[PathToken, ...] | list[PathToken],
    pattern: re.Pattern[str],
    outcomes: list[RedactionOutcome] | None = None,
) -> Any:
    """Walk ``tokens`` from ``node`` and redact what they select.

    Containers are modified in place; the (possibly replaced) node is
    returned so string leaves can be reassigned by the caller.

    Args:
        node: Current node (any JSON-like value)
        tokens: Remaining path tokens
        pattern: Compiled regex of the rule
        outcomes: Optional list collecting one outcome per visited leaf or dead end

    Returns:
        The redacted node
    """
    if outcomes is None:
        outcomes = []

    if not tokens:
        return _redact_leaf(node, pattern, outcomes)

    token, rest = tokens[0], tokens[1:]

    if token.kind is TokenKind.WILDCARD:
        if isinstance(node, list):
            for i, item in enumerate(node):
                node[i] = redact_path(item, rest, pattern, outcomes)
        elif isinstance(node, dict):
            for key, item in node.items():
                node[key] = redact_path(item, rest, pattern, outcomes)
        else:
            outcomes.append(RedactionOutcome.SKIPPED_TYPE_MISMATCH)
        return node

    if token.kind is TokenKind.INDEX:
        if not isinstance(node, list):
            outcomes.append(RedactionOutcome.SKIPPED_TYPE_MISMATCH)
        elif token.index is not None and 0 <= token.index < len(node):
            node[token.index] = redact_path(node[token.index], rest, pattern, outcomes)
        else:
            outcomes.append(RedactionOutcome.SKIPPED_NOT_FOUND)
        return node

    if not isinstance(node, dict):
        outcomes.append(RedactionOutcome.SKIPPED_TYPE_MISMATCH)
    elif token.key in node:
        node[token.key] = redact_path(node[token.key], rest, pattern, outcomes)
    else:
        outcomes.append(RedactionOutcome.SKIPPED_NOT_FOUND)
    return node


def build_rules(rules: Mapping[str, Any] | Iterable[RedactionRule] | None) -> list[RedactionRule]:
    """Normalize a rule source into a list of usable rules.

    Args:
        rules: Ordered mapping of path -> pattern, or prebuilt rules

    Returns:
        Usable rules in source order
    """
    if not rules:
        return []

    if isinstance(rules, Mapping):
        built = [RedactionRule.from_config(path, pattern) for path, pattern in rules.items()]
        return [rule for rule in built if rule is not None]

    return list(rules)


class HarRedactor:
    """Apply an ordered set of redaction rules to HAR documents.

    Rules run in order and each sees the output of the previous ones.

    Example:
        >>> redactor = HarRedactor({"log.entries[*].request.headers[*]": "/^authorization$/i"})
        >>> har = {"log": {"entries": [{"request": {"headers": [
        ...     {"name": "Authorization", "value": "Bearer x"}]}}]}}
        >>> redactor.apply(har)["log"]["entries"][0]["request"]["headers"][0]["value"]
        '[REDACTED]'
    """

    def __init__(self, rules: Mapping[str, Any] | Iterable[RedactionRule] | None = None) -> None:
        self.rules = build_rules(rules)

    @classmethod
    def from_file(cls, custom_path: Path | str | None = None, *, include_builtin: bool = True) -> HarRedactor:
        """Create a redactor from the built-in rules and an optional rules file.

        Raises:
            PatternLoadError: If the rules file cannot be loaded
        """
        return cls(load_redaction_rules(custom_path, include_builtin=include_builtin))

    def apply_with_report(
        self, document: dict[str, Any]
    ) -> tuple[dict[str, Any], list[tuple[RedactionRule, list[RedactionOutcome]]]]:
        """Redact a copy of ``document`` and report what each rule did.

        Args:
            document: HAR document

        Returns:
            Tuple of (redacted copy, [(rule, outcomes), ...])
        """
        result = copy.deepcopy(document)
        report: list[tuple[RedactionRule, list[RedactionOutcome]]] = []

        for rule in self.rules:
            outcomes: list[RedactionOutcome] = []
            result = redact_path(result, rule.tokens, rule.pattern, outcomes)
            report.append((rule, outcomes))
            _LOGGER.debug(
                "Redaction rule %s: %d applied of %d visited",
                rule.path,
                outcomes.count(RedactionOutcome.APPLIED),
                len(outcomes),
            )

        return result, report

    def apply(self, document: dict[str, Any]) -> dict[str, Any]:
        """Return a redacted copy of ``document``."""
        if not self.rules:
            return document
        result, _ = self.apply_with_report(document)
        return result
