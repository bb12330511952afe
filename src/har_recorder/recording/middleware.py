"""Recording orchestration: encode, redact, write.

``HarRecorder`` turns one finished transaction into a HAR file.
``HarRecorderMiddleware`` wraps any ``handler(request) -> response`` callable,
times it, and records the result without ever changing the response.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from har_recorder.config import RecorderConfig
from har_recorder.recording.encoder import HarEncoder, RequestLike, ResponseLike
from har_recorder.recording.writer import HarWriter, build_filename
from har_recorder.redaction import HarRedactor

_LOGGER = logging.getLogger(__name__)

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")


class HarRecorder:
    """Encode, redact and persist single transactions.

    Args:
        config: Recorder configuration
        encoder: Encoder override
        redactor: Redactor override (default: built from ``config.redactions``)
        writer: Writer override
    """

    def __init__(
        self,
        config: RecorderConfig | None = None,
        encoder: HarEncoder | None = None,
        redactor: HarRedactor | None = None,
        writer: HarWriter | None = None,
    ) -> None:
        self.config = config or RecorderConfig()
        self.encoder = encoder or HarEncoder(self.config)
        self.redactor = redactor or HarRedactor(self.config.redactions)
        self.writer = writer or HarWriter(self.config)

    def build_har(
        self,
        request: RequestLike,
        response: ResponseLike,
        started_at: float,
        ended_at: float,
    ) -> dict[str, Any]:
        """Encode and redact one transaction without writing it."""
        har = self.encoder.encode(request, response, started_at, ended_at)
        return self.redactor.apply(har)

    def record(
        self,
        request: RequestLike,
        response: ResponseLike,
        started_at: float,
        ended_at: float,
    ) -> Path:
        """Record one transaction to a new HAR file.

        Returns:
            Path of the written file

        Raises:
            HarWriteError: If the file cannot be written
        """
        har = self.build_har(request, response, started_at, ended_at)
        filename = build_filename(self.config.filename_pattern)
        return self.writer.write(har, filename)


class HarRecorderMiddleware:
    """Record every transaction passing through a handler.

    Recording is best-effort: failures are logged and the handler's response
    is always returned unchanged.

    Example:
        >>> middleware = HarRecorderMiddleware(RecorderConfig(output_dir="/tmp/har"))
        >>> # response = middleware.process(request, app_handler)
    """

    def __init__(
        self,
        config: RecorderConfig | None = None,
        recorder: HarRecorder | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or (recorder.config if recorder is not None else RecorderConfig())
        self._recorder = recorder
        self._clock = clock

    @property
    def recorder(self) -> HarRecorder:
        if self._recorder is None:
            self._recorder = HarRecorder(self.config)
        return self._recorder

    def process(self, request: RequestT, handler: Callable[[RequestT], ResponseT]) -> ResponseT:
        """Run ``handler`` and record the transaction.

        Args:
            request: Request passed to the handler
            handler: Callable producing the response

        Returns:
            The handler's response, untouched
        """
        if not self.config.enabled:
            return handler(request)

        started_at = self._clock()
        response = handler(request)
        ended_at = self._clock()

        try:
            self.recorder.record(request, response, started_at, ended_at)  # type: ignore[arg-type]
        except Exception:
            _LOGGER.exception("Failed to record HAR for %s", getattr(request, "url", request))

        return response

    def wrap(self, handler: Callable[[RequestT], ResponseT]) -> Callable[[RequestT], ResponseT]:
        """Return ``handler`` wrapped so every call is recorded."""

        @functools.wraps(handler)
        def wrapper(request: RequestT) -> ResponseT:
            return self.process(request, handler)

        return wrapper
