"""HAR 1.2 encoding of a captured HTTP transaction.

The encoder only needs a small capability surface from the host framework:
method, absolute URL, protocol version, header multimap, query parameters and
a body. ``CapturedRequest`` and ``CapturedResponse`` provide it; any object
with the same attributes works too.

Encoding never raises for missing data. Absent fields degrade to empty
strings, empty lists or -1.
"""

from __future__ import annotations

import io
import json
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol, Union
from urllib.parse import parse_qsl, urlsplit

from har_recorder.config import DEFAULT_MAX_BODY_SIZE, RecorderConfig

HAR_VERSION = "1.2"

_STATUS_CODE_RE = re.compile(r"\s*(\d{3})\b")

HeaderSource = Union[Mapping[str, Any], Iterable[tuple[str, str]], None]
BodySource = Union[bytes, bytearray, str, io.IOBase, None]


class RequestLike(Protocol):
    """What the encoder reads from a request."""

    method: str
    url: str
    http_version: str
    headers: HeaderSource
    query_params: Any
    body: BodySource


class ResponseLike(Protocol):
    """What the encoder reads from a response."""

    status: int
    reason: str
    http_version: str
    headers: HeaderSource
    body: BodySource


@dataclass
class CapturedRequest:
    """A request as seen by the host framework.

    Attributes:
        method: HTTP method
        url: Absolute URL including query string
        http_version: Protocol version ("1.1", "HTTP/2", ...)
        headers: Mapping of name -> value(s), or (name, value) pairs
        query_params: Parsed query parameters (None parses them from ``url``)
        body: Raw body bytes, text, or a binary stream
    """

    method: str
    url: str
    http_version: str = "1.1"
    headers: HeaderSource = ()
    query_params: Any = None
    body: BodySource = b""


@dataclass
class CapturedResponse:
    """A response as seen by the host framework.

    Attributes:
        status: Status code
        reason: Reason phrase
        http_version: Protocol version
        headers: Mapping of name -> value(s), or (name, value) pairs
        body: Raw body bytes, text, or a binary stream
    """

    status: int
    reason: str = ""
    http_version: str = "1.1"
    headers: HeaderSource = ()
    body: BodySource = b""


def iter_header_pairs(headers: HeaderSource) -> Iterator[tuple[str, str]]:
    """Flatten a header multimap into (name, value) pairs.

    A name with several values yields one pair per value, in the order the
    source provides them.

    Args:
        headers: Mapping of name -> str or list of str, or an iterable of pairs

    Yields:
        (name, value) tuples
    """
    if not headers:
        return

    items: Iterable[Any] = headers.items() if hasattr(headers, "items") else headers
    for item in items:
        try:
            name, values = item
        except (TypeError, ValueError):
            continue
        if isinstance(values, (list, tuple)):
            for value in values:
                yield str(name), str(value)
        elif values is not None:
            yield str(name), str(values)


def header_line(headers: HeaderSource, name: str) -> str:
    """Return all values of a header joined by ", " (case-insensitive lookup)."""
    wanted = name.lower()
    return ", ".join(value for key, value in iter_header_pairs(headers) if key.lower() == wanted)


def read_body(body: BodySource) -> bytes:
    """Read a body fully, rewinding seekable streams before and after.

    Args:
        body: Bytes, text, stream or None

    Returns:
        Body bytes (empty if absent or unreadable)
    """
    if body is None:
        return b""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")

    read = getattr(body, "read", None)
    if read is None:
        return b""

    seekable = getattr(body, "seekable", None)
    can_seek = bool(seekable()) if callable(seekable) else False
    if can_seek:
        body.seek(0)
    data = read()
    if can_seek:
        body.seek(0)

    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data or b"")


def truncate_body(body: bytes, max_size: int) -> str:
    """Truncate body bytes and decode them as text.

    Args:
        body: Raw body
        max_size: Maximum number of bytes to keep (<= 0 keeps nothing)

    Returns:
        Decoded text of at most ``max_size`` bytes of the body
    """
    if max_size <= 0:
        return ""
    return body[:max_size].decode("utf-8", errors="replace")


def _query_value(value: Any) -> str:
    """Stringify a query value; scalars are cast, everything else is compact JSON."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def format_query(query_params: Any, url: str = "") -> list[dict[str, str]]:
    """Build the HAR ``queryString`` list.

    Args:
        query_params: Mapping or list of pairs (None parses ``url``)
        url: Request URL used when ``query_params`` is None

    Returns:
        List of {"name", "value"} dicts
    """
    if query_params is None:
        query_params = parse_qsl(urlsplit(url).query, keep_blank_values=True)

    items = query_params.items() if isinstance(query_params, Mapping) else query_params
    formatted = []
    for item in items:
        try:
            name, value = item
        except (TypeError, ValueError):
            continue
        formatted.append({"name": str(name), "value": _query_value(value)})
    return formatted


def format_headers(headers: HeaderSource) -> list[dict[str, str]]:
    """Build a HAR headers list, one pair per header value."""
    return [{"name": name, "value": value} for name, value in iter_header_pairs(headers)]


def format_http_version(version: Any) -> str:
    """Render a protocol version the way HAR viewers expect (``HTTP/1.1``)."""
    text = str(version or "").strip()
    if not text:
        return ""
    if text.upper().startswith("HTTP/"):
        return "HTTP/" + text[5:]
    return f"HTTP/{text}"


def format_status(status: Any) -> int:
    """Coerce a response status to an int.

    WSGI-style status lines such as ``"200 OK"`` use their leading digits;
    anything without a usable code becomes 0.

    Example:
        >>> format_status("404 Not Found")
        404
    """
    if isinstance(status, bool):
        return 0
    if isinstance(status, int):
        return status
    match = _STATUS_CODE_RE.match(str(status or ""))
    return int(match.group(1)) if match else 0


def format_started(started_at: float) -> str:
    """Format a POSIX timestamp as an ISO 8601 UTC instant with second precision."""
    return datetime.fromtimestamp(int(started_at), tz=timezone.utc).isoformat()


class HarEncoder:
    """Build single-entry HAR documents from request/response pairs.

    Args:
        config: Recorder configuration (max body size, creator metadata)
    """

    def __init__(self, config: RecorderConfig | None = None) -> None:
        self.config = config or RecorderConfig(redactions={})

    @property
    def max_body_size(self) -> int:
        try:
            return int(self.config.max_body_size)
        except (TypeError, ValueError):
            return DEFAULT_MAX_BODY_SIZE

    def encode(
        self,
        request: RequestLike,
        response: ResponseLike,
        started_at: float,
        ended_at: float,
    ) -> dict[str, Any]:
        """Encode one transaction.

        Args:
            request: Captured request
            response: Captured response
            started_at: Start time in seconds since the epoch
            ended_at: End time in seconds since the epoch

        Returns:
            HAR document with exactly one entry
        """
        request_body = read_body(getattr(request, "body", None))
        response_body = read_body(getattr(response, "body", None))
        elapsed_ms = max(0, int(round((ended_at - started_at) * 1000)))

        request_headers = getattr(request, "headers", None)
        response_headers = getattr(response, "headers", None)
        url = str(getattr(request, "url", "") or "")

        entry = {
            "startedDateTime": format_started(started_at),
            "time": elapsed_ms,
            "request": {
                "method": str(getattr(request, "method", "") or "").upper(),
                "url": url,
                "httpVersion": format_http_version(getattr(request, "http_version", "")),
                "cookies": [],
                "headers": format_headers(request_headers),
                "queryString": format_query(getattr(request, "query_params", None), url),
                "postData": {
                    "mimeType": header_line(request_headers, "Content-Type"),
                    "text": truncate_body(request_body, self.max_body_size),
                },
                "headersSize": -1,
                "bodySize": len(request_body),
            },
            "response": {
                "status": format_status(getattr(response, "status", 0)),
                "statusText": str(getattr(response, "reason", "") or ""),
                "httpVersion": format_http_version(getattr(response, "http_version", "")),
                "cookies": [],
                "headers": format_headers(response_headers),
                "content": {
                    "size": len(response_body),
                    "mimeType": header_line(response_headers, "Content-Type"),
                    "text": truncate_body(response_body, self.max_body_size),
                },
                "redirectURL": header_line(response_headers, "Location"),
                "headersSize": -1,
                "bodySize": len(response_body),
            },
            "cache": {},
            "timings": {
                "send": 0,
                "wait": elapsed_ms,
                "receive": 0,
            },
        }

        return {
            "log": {
                "version": HAR_VERSION,
                "creator": {
                    "name": self.config.creator_name,
                    "version": self.config.creator_version,
                },
                "entries": [entry],
            },
        }
