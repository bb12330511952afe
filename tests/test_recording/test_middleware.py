"""Tests for recording orchestration and the recorder middleware."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from har_recorder.config import RecorderConfig
from har_recorder.recording import (
    CapturedRequest,
    CapturedResponse,
    HarRecorder,
    HarRecorderMiddleware,
    HarWriteError,
)


def _config(tmp_path: Path, **overrides) -> RecorderConfig:
    values = {
        "output_dir": tmp_path / "har",
        "filename_pattern": "test-{uniqid}.har",
        "redactions": {},
        "max_body_size": 1024,
    }
    values.update(overrides)
    return RecorderConfig(**values)


def _request() -> CapturedRequest:
    return CapturedRequest(
        method="GET",
        url="http://localhost/test?q=1",
        headers={"Authorization": "Bearer secret-token", "Accept": "*/*"},
        query_params={"q": "1"},
    )


def _handler(body: str = "ok"):
    def handle(request: CapturedRequest) -> CapturedResponse:
        return CapturedResponse(status=200, reason="OK", headers={"Content-Type": "text/plain"}, body=body)

    return handle


def _written(tmp_path: Path) -> list[Path]:
    return sorted((tmp_path / "har").glob("test-*.har"))


class TestHarRecorder:
    """Tests for HarRecorder."""

    def test_record_writes_file(self, tmp_path: Path) -> None:
        """record() writes one HAR file and returns its path."""
        recorder = HarRecorder(_config(tmp_path))

        path = recorder.record(_request(), _handler()(_request()), 100.0, 100.5)

        assert path.parent == tmp_path / "har"
        har = json.loads(path.read_text(encoding="utf-8"))
        assert har["log"]["entries"][0]["time"] == 500

    def test_build_har_applies_redaction(self, tmp_path: Path) -> None:
        """build_har encodes and redacts without writing."""
        rules = {"log.entries[*].request.headers[*]": "/^authorization$/i"}
        recorder = HarRecorder(_config(tmp_path, redactions=rules))

        har = recorder.build_har(_request(), _handler()(_request()), 0.0, 0.0)

        assert har["log"]["entries"][0]["request"]["headers"][0]["value"] == "[REDACTED]"
        assert not (tmp_path / "har").exists()

    def test_default_config_uses_builtin_redactions(self) -> None:
        """Without explicit redactions, the built-in rules apply."""
        recorder = HarRecorder(RecorderConfig())

        har = recorder.build_har(_request(), _handler()(_request()), 0.0, 0.0)

        assert har["log"]["entries"][0]["request"]["headers"][0] == {
            "name": "Authorization",
            "value": "[REDACTED]",
        }


class TestHarRecorderMiddleware:
    """Tests for HarRecorderMiddleware."""

    def test_writes_har_and_redacts(self, tmp_path: Path) -> None:
        """A processed request is written with header values redacted."""
        rules = {"log.entries[0].request.headers[*].value": r"/Bearer\s+[^\s]+/i"}
        config = _config(tmp_path, redactions=rules)
        middleware = HarRecorderMiddleware(config)

        middleware.process(_request(), _handler())

        files = _written(tmp_path)
        assert len(files) == 1
        har = json.loads(files[0].read_text(encoding="utf-8"))
        values = [h["value"] for h in har["log"]["entries"][0]["request"]["headers"]]
        assert "[REDACTED]" in values
        assert "*/*" in values

    def test_max_body_size_truncates_response(self, tmp_path: Path) -> None:
        """Response text is cut to max_body_size bytes."""
        middleware = HarRecorderMiddleware(_config(tmp_path, max_body_size=5))

        middleware.process(_request(), _handler("0123456789"))

        har = json.loads(_written(tmp_path)[0].read_text(encoding="utf-8"))
        content = har["log"]["entries"][0]["response"]["content"]
        assert content["text"] == "01234"
        assert content["size"] == 10

    def test_returns_handler_response(self, tmp_path: Path) -> None:
        """The handler's response object is returned as-is."""
        response = CapturedResponse(status=418)
        middleware = HarRecorderMiddleware(_config(tmp_path))

        assert middleware.process(_request(), lambda request: response) is response

    def test_disabled_passes_through(self, tmp_path: Path) -> None:
        """Nothing is recorded when disabled."""
        recorder = MagicMock()
        middleware = HarRecorderMiddleware(_config(tmp_path, enabled=False), recorder=recorder)

        response = middleware.process(_request(), _handler())

        assert response.status == 200
        recorder.record.assert_not_called()

    def test_write_failure_does_not_affect_response(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Recording failures are logged and the response still returned."""
        recorder = MagicMock()
        recorder.record.side_effect = HarWriteError("disk full", tmp_path)
        middleware = HarRecorderMiddleware(_config(tmp_path), recorder=recorder)

        response = middleware.process(_request(), _handler("body"))

        assert response.body == "body"
        assert "Failed to record HAR" in caplog.text

    def test_handler_errors_propagate(self, tmp_path: Path) -> None:
        """Errors from the handler itself are not swallowed."""
        middleware = HarRecorderMiddleware(_config(tmp_path))

        def broken(request):
            raise RuntimeError("handler failed")

        with pytest.raises(RuntimeError, match="handler failed"):
            middleware.process(_request(), broken)
        assert _written(tmp_path) == []

    def test_timing_uses_clock(self, tmp_path: Path) -> None:
        """Elapsed time is measured around the handler."""
        ticks = iter([10.0, 10.25])
        middleware = HarRecorderMiddleware(_config(tmp_path), clock=lambda: next(ticks))

        middleware.process(_request(), _handler())

        har = json.loads(_written(tmp_path)[0].read_text(encoding="utf-8"))
        assert har["log"]["entries"][0]["time"] == 250

    def test_wrap(self, tmp_path: Path) -> None:
        """wrap() records every call of the wrapped handler."""
        handler = HarRecorderMiddleware(_config(tmp_path)).wrap(_handler())

        handler(_request())
        handler(_request())

        assert len(_written(tmp_path)) == 2
