"""Replay of captured HAR requests.

Entries are processed one at a time, in document order. Dry run is the
default; requests are only sent when ``send=True``. A failing request is
reported for its entry and the loop moves on.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from har_recorder.replay.transport import HttpTransport, RequestOptions, UrllibTransport

_LOGGER = logging.getLogger(__name__)

DEFAULT_METHODS = "GET"
DEFAULT_TIMEOUT = 30.0

# Recomputed by the transport
_DROPPED_HEADERS = frozenset({"host", "content-length"})


class ReplayConfigError(ValueError):
    """Raised when replay options are invalid; nothing is sent."""


def parse_methods(methods: str | Iterable[str]) -> frozenset[str]:
    """Parse an allowed-methods filter.

    Args:
        methods: Comma-separated string ("get, post") or iterable of names

    Returns:
        Uppercased method names with empty items dropped

    Example:
        >>> sorted(parse_methods(" get,POST,, "))
        ['GET', 'POST']
    """
    items = methods.split(",") if isinstance(methods, str) else methods
    return frozenset(m.strip().upper() for m in items if m and m.strip())


@dataclass
class ReplayOptions:
    """Replay settings.

    Attributes:
        base_url: Replace scheme/host/port and prefix the path of every URL
        send: Actually send requests
        dry_run: Explicitly request a dry run (conflicts with ``send``)
        methods: Allowed methods, comma-separated or iterable
        limit: Maximum number of entries to replay (0 = all)
        sleep_ms: Pause after each replayed entry, in milliseconds
        timeout: Per-request timeout in seconds
    """

    base_url: str | None = None
    send: bool = False
    dry_run: bool = False
    methods: str | Iterable[str] = DEFAULT_METHODS
    limit: int = 0
    sleep_ms: int = 0
    timeout: float = DEFAULT_TIMEOUT

    @property
    def is_dry_run(self) -> bool:
        return not self.send

    def validate(self) -> frozenset[str]:
        """Check the options before anything is replayed.

        Returns:
            The parsed allowed-method set

        Raises:
            ReplayConfigError: If the options conflict or are out of range
        """
        if self.send and self.dry_run:
            raise ReplayConfigError("Options --send and --dry-run cannot be used together.")

        allowed = parse_methods(self.methods)
        if not allowed:
            raise ReplayConfigError("No HTTP methods allowed; --methods must name at least one method.")

        if self.limit < 0:
            raise ReplayConfigError(f"--limit must be >= 0, got {self.limit}")
        if self.sleep_ms < 0:
            raise ReplayConfigError(f"--sleep must be >= 0, got {self.sleep_ms}")
        if self.timeout <= 0:
            raise ReplayConfigError(f"--timeout must be > 0, got {self.timeout}")

        return allowed


class OutcomeKind(enum.Enum):
    """Result of processing one entry."""

    DRY_RUN = "dry_run"
    SENT = "sent"
    FAILED = "failed"
    SKIPPED_NO_REQUEST = "skipped_no_request"
    SKIPPED_METHOD = "skipped_method"
    SKIPPED_INVALID_URL = "skipped_invalid_url"

    @property
    def replayed(self) -> bool:
        """True for outcomes that count towards the limit."""
        return self in (OutcomeKind.DRY_RUN, OutcomeKind.SENT, OutcomeKind.FAILED)


@dataclass
class EntryOutcome:
    """What happened to one HAR entry.

    Attributes:
        index: Position of the entry in the document
        kind: Outcome kind
        method: Uppercased method ("" if unknown)
        url: URL as sent (after base URL rewrite)
        status_code: Response status when sent
        error: Transport error message when failed
    """

    index: int
    kind: OutcomeKind
    method: str = ""
    url: str = ""
    status_code: int | None = None
    error: str | None = None

    def describe(self) -> str:
        """Render the user-facing report line."""
        if self.kind is OutcomeKind.DRY_RUN:
            return f"DRY RUN {self.method} {self.url}"
        if self.kind is OutcomeKind.SENT:
            return f"{self.method} {self.url} -> {self.status_code}"
        if self.kind is OutcomeKind.FAILED:
            return f"Failed {self.method} {self.url}: {self.error}"
        if self.kind is OutcomeKind.SKIPPED_INVALID_URL:
            return "Skipping entry without a valid http(s) URL."
        if self.kind is OutcomeKind.SKIPPED_METHOD:
            return f"Skipping {self.method} entry (method not allowed)."
        return "Skipping entry without a request."


@dataclass
class ReplayResult:
    """Aggregate result of a replay run."""

    replayed: int = 0
    outcomes: list[EntryOutcome] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.kind is OutcomeKind.FAILED)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if not o.kind.replayed)

    def summary(self) -> str:
        return f"Replayed {self.replayed} request(s)."


def is_replayable_url(url: str) -> bool:
    """True if ``url`` is an absolute http(s) URL with a host."""
    if not url:
        return False
    parts = urlsplit(url)
    return parts.scheme.lower() in ("http", "https") and bool(parts.netloc)


def apply_base_url(url: str, base_url: str) -> str:
    """Point ``url`` at another server.

    Scheme, host and port come from ``base_url``; its path (trailing slashes
    stripped) is prefixed onto the original path. Query and fragment of the
    original URL are kept. If ``base_url`` has no scheme or host, ``url`` is
    returned unchanged.

    Example:
        >>> apply_base_url("https://prod.example.com/v1/users?active=1", "https://staging.example.com/api")
        'https://staging.example.com/api/v1/users?active=1'
    """
    try:
        base = urlsplit(base_url)
        target = urlsplit(url)
        port = base.port
    except ValueError:
        return url

    if not base.scheme or not base.hostname:
        return url

    base_path = base.path.rstrip("/")
    path = target.path or "/"
    if base_path:
        path = f"{base_path}/{path.lstrip('/')}"

    host = base.hostname
    if ":" in host:
        host = f"[{host}]"

    rebuilt = f"{base.scheme}://{host}"
    if port is not None:
        rebuilt += f":{port}"
    rebuilt += path
    if target.query:
        rebuilt += f"?{target.query}"
    if target.fragment:
        rebuilt += f"#{target.fragment}"
    return rebuilt


def normalize_headers(headers: Any) -> dict[str, str]:
    """Collapse a HAR header list into a single-valued mapping.

    Host and Content-Length are dropped; later duplicates overwrite earlier ones.
    """
    normalized: dict[str, str] = {}
    if not isinstance(headers, list):
        return normalized

    for header in headers:
        if not isinstance(header, dict):
            continue
        name = header.get("name")
        value = header.get("value")
        if not isinstance(name, str) or not name or not isinstance(value, str):
            continue
        if name.lower() in _DROPPED_HEADERS:
            continue
        normalized[name] = value

    return normalized


def build_request_options(request: dict[str, Any]) -> RequestOptions:
    """Derive outgoing headers and body from a HAR request object.

    ``postData.text`` is used verbatim when non-empty; otherwise
    ``postData.params`` becomes a form body.
    """
    options = RequestOptions(headers=normalize_headers(request.get("headers", [])))

    post_data = request.get("postData")
    if not isinstance(post_data, dict):
        return options

    text = post_data.get("text")
    if isinstance(text, str) and text:
        options.body = text
        return options

    params = post_data.get("params")
    if isinstance(params, list):
        form: dict[str, str] = {}
        for param in params:
            if not isinstance(param, dict):
                continue
            name = param.get("name")
            if not isinstance(name, str) or not name:
                continue
            value = param.get("value", "")
            form[name] = value if isinstance(value, str) else str(value)
        if form:
            options.form = form

    return options


class HarReplayer:
    """Re-issue the requests of a HAR document.

    Args:
        transport: HTTP transport (default: ``UrllibTransport``)
        sleep: Blocking sleep function taking seconds
    """

    def __init__(
        self,
        transport: HttpTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.transport = transport or UrllibTransport()
        self._sleep = sleep

    def _process(
        self, index: int, entry: Any, options: ReplayOptions, allowed: frozenset[str]
    ) -> EntryOutcome:
        request = entry.get("request") if isinstance(entry, dict) else None
        if not isinstance(request, dict):
            return EntryOutcome(index, OutcomeKind.SKIPPED_NO_REQUEST)

        method = str(request.get("method") or "GET").upper()
        if method not in allowed:
            _LOGGER.debug("Skipping entry %d: method %s not allowed", index, method)
            return EntryOutcome(index, OutcomeKind.SKIPPED_METHOD, method=method)

        url = request.get("url")
        url = url if isinstance(url, str) else ""
        if not is_replayable_url(url):
            _LOGGER.warning("Skipping entry %d without a valid http(s) URL: %r", index, url)
            return EntryOutcome(index, OutcomeKind.SKIPPED_INVALID_URL, method=method, url=url)

        if options.base_url:
            url = apply_base_url(url, options.base_url)

        request_options = build_request_options(request)

        if options.is_dry_run:
            return EntryOutcome(index, OutcomeKind.DRY_RUN, method=method, url=url)

        try:
            status = self.transport.send(method, url, request_options, options.timeout)
        except Exception as e:
            _LOGGER.error("Failed %s %s: %s", method, url, e)
            return EntryOutcome(
                index, OutcomeKind.FAILED, method=method, url=url, error=str(e) or type(e).__name__
            )

        return EntryOutcome(index, OutcomeKind.SENT, method=method, url=url, status_code=status)

    def replay(
        self,
        entries: list[Any],
        options: ReplayOptions | None = None,
        on_outcome: Callable[[EntryOutcome], None] | None = None,
    ) -> ReplayResult:
        """Replay ``entries`` in order.

        Args:
            entries: HAR ``log.entries`` list
            options: Replay options (default: dry run of GET requests)
            on_outcome: Called with each outcome as soon as it is known

        Returns:
            ReplayResult with the replayed count and per-entry outcomes

        Raises:
            ReplayConfigError: If the options are invalid (nothing is processed)
        """
        if options is None:
            options = ReplayOptions()
        allowed = options.validate()

        result = ReplayResult()
        for index, entry in enumerate(entries):
            if options.limit > 0 and result.replayed >= options.limit:
                break

            outcome = self._process(index, entry, options, allowed)
            result.outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

            if not outcome.kind.replayed:
                continue

            result.replayed += 1
            if options.sleep_ms > 0:
                self._sleep(options.sleep_ms / 1000)

        _LOGGER.info("Replayed %d of %d HAR entries", result.replayed, len(entries))
        return result
