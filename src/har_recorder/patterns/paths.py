"""Path mini-language for addressing nodes inside a HAR document.

A path is a sequence of dotted keys and bracketed selectors:

    log.entries[*].request.headers[0].value
    log["entries"][*].response.content.text

Grammar:
    path    = segment (("." segment) | bracket)*
    segment = one or more of [A-Za-z0-9_-]
    bracket = "[" ("*" | integer | quoted-string | bare-key) "]"

This is deliberately not JSONPath. The parser never raises: unterminated
brackets end the parse and unrecognized characters are skipped, so a
malformed path simply yields fewer (possibly zero) tokens.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

_KEY_CHAR_RE = re.compile(r"[A-Za-z0-9_-]")


class TokenKind(enum.Enum):
    """Kind of a parsed path token."""

    KEY = "key"
    INDEX = "index"
    WILDCARD = "wildcard"


@dataclass(frozen=True)
class PathToken:
    """One step of a parsed path.

    Attributes:
        kind: Token kind
        key: Mapping key (KEY tokens only)
        index: Sequence position (INDEX tokens only)
    """

    kind: TokenKind
    key: str | None = None
    index: int | None = None

    @classmethod
    def for_key(cls, name: str) -> PathToken:
        return cls(TokenKind.KEY, key=name)

    @classmethod
    def for_index(cls, position: int) -> PathToken:
        return cls(TokenKind.INDEX, index=position)

    @classmethod
    def wildcard(cls) -> PathToken:
        return cls(TokenKind.WILDCARD)

    def __str__(self) -> str:
        if self.kind is TokenKind.WILDCARD:
            return "[*]"
        if self.kind is TokenKind.INDEX:
            return f"[{self.index}]"
        return str(self.key)


def _parse_bracket(content: str) -> PathToken:
    """Parse the text between a pair of brackets.

    Args:
        content: Raw bracket content (without the brackets)

    Returns:
        Wildcard, index or key token
    """
    content = content.strip()
    if content == "*":
        return PathToken.wildcard()

    # Quoted content is always a key, even when it looks numeric
    if len(content) >= 2 and content[0] == content[-1] and content[0] in ("'", '"'):
        return PathToken.for_key(content[1:-1])

    if content.isdigit():
        return PathToken.for_index(int(content))

    return PathToken.for_key(content)


def parse_path(path: str) -> tuple[PathToken, ...]:
    """Parse a path string into tokens.

    Args:
        path: Path expression such as ``log.entries[*].request.headers[*]``

    Returns:
        Tuple of tokens (empty if nothing could be parsed)

    Example:
        >>> [str(t) for t in parse_path("log.entries[0].request")]
        ['log', 'entries', '[0]', 'request']
        >>> parse_path("[")
        ()
    """
    tokens: list[PathToken] = []
    length = len(path)
    i = 0

    while i < length:
        char = path[i]
        if char == ".":
            i += 1
            continue

        if char == "[":
            end = path.find("]", i)
            if end == -1:
                break
            tokens.append(_parse_bracket(path[i + 1 : end]))
            i = end + 1
            continue

        if not _KEY_CHAR_RE.match(char):
            i += 1
            continue

        start = i
        while i < length and _KEY_CHAR_RE.match(path[i]):
            i += 1
        tokens.append(PathToken.for_key(path[start:i]))

    return tuple(tokens)


def format_path(tokens: tuple[PathToken, ...] | list[PathToken]) -> str:
    """Render tokens back into a canonical path string."""
    parts: list[str] = []
    for token in tokens:
        if token.kind is TokenKind.KEY:
            if parts:
                parts.append(".")
            parts.append(str(token.key))
        else:
            parts.append(str(token))
    return "".join(parts)
