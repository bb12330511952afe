"""HTTP transport used to send replayed requests.

The replayer only depends on the ``HttpTransport`` protocol; ``UrllibTransport``
is the default implementation built on ``urllib.request``.
"""

from __future__ import annotations

import logging
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlencode

_LOGGER = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass
class RequestOptions:
    """Outgoing request details derived from a HAR entry.

    Attributes:
        headers: Single-valued header mapping (last duplicate wins)
        body: Raw body text, if the entry had one
        form: Form fields, used only when there is no raw body
    """

    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None
    form: dict[str, str] | None = None

    def encoded_body(self) -> bytes | None:
        """Return the body bytes to send, if any."""
        if self.body is not None:
            return self.body.encode("utf-8")
        if self.form:
            return urlencode(self.form).encode("ascii")
        return None


class HttpTransport(Protocol):
    """Anything that can send a request and report its status code."""

    def send(self, method: str, url: str, options: RequestOptions, timeout: float) -> int:
        """Send a request.

        Returns:
            HTTP status code

        Raises:
            Exception: Any transport failure
        """
        ...


class _NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Surface 3xx responses as ``HTTPError`` instead of following them."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        return None


class UrllibTransport:
    """Send requests with ``urllib.request``.

    Redirects are not followed, so the status reported is the one the
    replayed request itself received. HTTP error and redirect statuses
    (3xx/4xx/5xx) are returned as status codes; only connection-level
    problems raise.

    Args:
        verify_tls: If False, accept self-signed certificates
    """

    def __init__(self, verify_tls: bool = True) -> None:
        self.verify_tls = verify_tls

    def _context(self) -> ssl.SSLContext | None:
        if self.verify_tls:
            return None
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx

    def _opener(self, url: str) -> urllib.request.OpenerDirector:
        handlers: list[urllib.request.BaseHandler] = [_NoRedirectHandler()]
        context = self._context() if url.lower().startswith("https://") else None
        if context is not None:
            handlers.append(urllib.request.HTTPSHandler(context=context))
        return urllib.request.build_opener(*handlers)

    def send(self, method: str, url: str, options: RequestOptions, timeout: float) -> int:
        headers = dict(options.headers)
        data = options.encoded_body()
        if options.body is None and options.form and not any(k.lower() == "content-type" for k in headers):
            headers["Content-Type"] = FORM_CONTENT_TYPE

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        try:
            with self._opener(url).open(req, timeout=timeout) as resp:
                status = int(resp.status)
        except urllib.error.HTTPError as e:
            # The server answered; error and redirect statuses are still replayed responses
            status = int(e.code)
            e.close()

        _LOGGER.debug("%s %s -> %d", method, url, status)
        return status
