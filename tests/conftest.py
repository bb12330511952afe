"""Pytest configuration and fixtures for har-recorder tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from har_recorder.patterns import clear_pattern_cache


@pytest.fixture(autouse=True)
def _clear_pattern_cache():
    """Start every test with an empty rule cache."""
    clear_pattern_cache()
    yield
    clear_pattern_cache()


@pytest.fixture
def temp_har_file(tmp_path: Path):
    """Create a HAR file for testing."""

    def _create_har(entries: list[dict] | None = None, name: str = "capture.har") -> Path:
        if entries is None:
            entries = []

        har_data = {"log": {"version": "1.2", "entries": entries}}
        har_file = tmp_path / name
        har_file.write_text(json.dumps(har_data), encoding="utf-8")
        return har_file

    return _create_har


@pytest.fixture
def sample_har_entry():
    """Create a sample HAR entry for testing."""

    def _create_entry(
        method: str = "GET",
        url: str = "https://example.com/",
        status: int = 200,
        content: str = "",
        mime_type: str = "text/html",
        headers: list[dict] | None = None,
        post_data: dict | None = None,
    ) -> dict:
        entry = {
            "request": {
                "method": method,
                "url": url,
                "headers": headers or [],
                "cookies": [],
            },
            "response": {
                "status": status,
                "statusText": "OK",
                "headers": [],
                "content": {"text": content, "mimeType": mime_type},
            },
        }
        if post_data:
            entry["request"]["postData"] = post_data
        return entry

    return _create_entry
