"""Tests for atomic HAR writing and filename templates."""

from __future__ import annotations

import json
import os
import re
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from har_recorder.config import RecorderConfig
from har_recorder.recording.writer import HarWriteError, HarWriter, build_filename, uniqid


def _doc(marker: str = "x") -> dict:
    return {
        "log": {
            "version": "1.2",
            "creator": {"name": "test", "version": "1.0"},
            "entries": [
                {
                    "request": {"method": "GET", "url": f"https://example.com/a/b?m={marker}"},
                    "response": {"status": 200, "content": {"text": "héllo ✓ </script>"}},
                }
            ],
        }
    }


class TestHarWriter:
    """Tests for HarWriter.write."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """Written files parse back to the same tree."""
        writer = HarWriter(output_dir=tmp_path)

        path = writer.write(_doc(), "capture.har")

        assert path == tmp_path / "capture.har"
        assert json.loads(path.read_text(encoding="utf-8")) == _doc()

    def test_pretty_printed_and_unescaped(self, tmp_path: Path) -> None:
        """Output is indented with slashes and unicode left as-is."""
        path = HarWriter(output_dir=tmp_path).write(_doc(), "capture.har")
        text = path.read_text(encoding="utf-8")

        assert "\n  " in text
        assert "https://example.com/a/b" in text
        assert "héllo ✓" in text
        assert "\\u" not in text
        assert "\\/" not in text

    def test_creates_nested_directory(self, tmp_path: Path) -> None:
        """Missing output directories are created with parents."""
        out = tmp_path / "a" / "b" / "c"

        HarWriter(RecorderConfig(redactions={}, output_dir=out)).write(_doc(), "x.har")

        assert (out / "x.har").is_file()

    def test_existing_directory_ok(self, tmp_path: Path) -> None:
        """Writing twice into the same directory works."""
        writer = HarWriter(output_dir=tmp_path)
        writer.write(_doc("1"), "one.har")
        writer.write(_doc("2"), "two.har")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["one.har", "two.har"]

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        """The final name is replaced atomically."""
        writer = HarWriter(output_dir=tmp_path)
        writer.write(_doc("old"), "same.har")
        writer.write(_doc("new"), "same.har")

        assert "m=new" in (tmp_path / "same.har").read_text(encoding="utf-8")

    def test_no_temp_file_left(self, tmp_path: Path) -> None:
        """Only the final file remains after success."""
        HarWriter(output_dir=tmp_path).write(_doc(), "capture.har")
        assert [p.name for p in tmp_path.iterdir()] == ["capture.har"]

    def test_directory_creation_failure(self, tmp_path: Path) -> None:
        """A file in place of the directory is a write error."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a dir")

        with pytest.raises(HarWriteError, match="Unable to create HAR directory"):
            HarWriter(output_dir=blocker / "sub").write(_doc(), "x.har")

    def test_directory_race_tolerated(self, tmp_path: Path) -> None:
        """mkdir failing because another writer created the directory is fine."""
        out = tmp_path / "race"
        out.mkdir()

        with patch.object(Path, "mkdir", side_effect=FileExistsError("exists")):
            path = HarWriter(output_dir=out).write(_doc(), "x.har")

        assert path.is_file()

    def test_rename_failure_cleans_temp(self, tmp_path: Path) -> None:
        """A failed rename removes the temp file and raises."""
        with (
            patch("har_recorder.recording.writer.os.replace", side_effect=OSError("boom")),
            pytest.raises(HarWriteError, match="Unable to finalize HAR file") as exc_info,
        ):
            HarWriter(output_dir=tmp_path).write(_doc(), "x.har")

        assert exc_info.value.path == str(tmp_path / "x.har")
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.skipif(sys.platform == "win32", reason="chmod doesn't work on Windows")
    def test_temp_write_failure(self, tmp_path: Path) -> None:
        """An unwritable directory is a write error."""
        out = tmp_path / "ro"
        out.mkdir()
        out.chmod(0o500)
        try:
            if os.access(out, os.W_OK):
                pytest.skip("running with permissions that bypass chmod")
            with pytest.raises(HarWriteError, match="Unable to write HAR file"):
                HarWriter(output_dir=out).write(_doc(), "x.har")
        finally:
            out.chmod(0o700)

    @pytest.mark.parametrize("filename", ["", ".", "..", "sub/x.har", "../x.har"])
    def test_invalid_filename_rejected(self, tmp_path: Path, filename: str) -> None:
        """Names that are not plain file names never touch the filesystem."""
        out = tmp_path / "out"

        with pytest.raises(HarWriteError, match="Invalid HAR file name"):
            HarWriter(output_dir=out).write(_doc(), filename)

        assert list(tmp_path.iterdir()) == []

    def test_unserializable_document(self, tmp_path: Path) -> None:
        """Values JSON cannot encode are a write error and leave nothing behind."""
        with pytest.raises(HarWriteError, match="Failed to encode"):
            HarWriter(output_dir=tmp_path).write({"log": {"bad": object()}}, "x.har")
        assert list(tmp_path.iterdir()) == []

    def test_concurrent_writes(self, tmp_path: Path) -> None:
        """Concurrent writers each produce one complete file."""
        writer = HarWriter(output_dir=tmp_path)
        names = [build_filename("har-{uniqid}-{random}.har") for _ in range(32)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            paths = list(pool.map(lambda n: writer.write(_doc(n), n), names))

        assert len(set(paths)) == 32
        assert sorted(p.name for p in tmp_path.iterdir()) == sorted(names)
        for name in names:
            data = json.loads((tmp_path / name).read_text(encoding="utf-8"))
            assert data == _doc(name)


class TestBuildFilename:
    """Tests for filename templates."""

    def test_date_placeholder(self) -> None:
        """{date} uses local time as YYYYmmdd-HHMMSS."""
        assert build_filename("har-{date}.har", datetime(2024, 1, 2, 3, 4, 5)) == "har-20240102-030405.har"

    def test_random_placeholder_is_uuid(self) -> None:
        """{random} is a UUID4."""
        name = build_filename("{random}.har")
        assert re.fullmatch(r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[0-9a-f]{4}-[0-9a-f]{12}\.har", name)

    def test_uniqid_differs_between_rapid_calls(self) -> None:
        """{uniqid} never repeats within the process."""
        names = {build_filename("har-{uniqid}.har") for _ in range(1000)}
        assert len(names) == 1000

    def test_uniqid_token(self) -> None:
        """uniqid tokens are distinct."""
        assert uniqid() != uniqid()

    def test_unknown_placeholder_untouched(self) -> None:
        """Unknown placeholders are left as-is."""
        filename = build_filename("har-{host}-{date}.har", datetime(2024, 1, 1))
        assert filename == "har-{host}-20240101-000000.har"

    def test_repeated_placeholder(self) -> None:
        """Every occurrence of a placeholder is replaced."""
        assert build_filename("{date}_{date}", datetime(2024, 1, 1)) == "20240101-000000_20240101-000000"

    @pytest.mark.parametrize("pattern", ["../escape-{random}.har", "sub/dir/x.har", "..\\x.har"])
    def test_directory_components_dropped(self, pattern: str) -> None:
        """Templates cannot point outside the output directory."""
        name = build_filename(pattern)
        assert "/" not in name
        assert "\\" not in name
        assert not name.startswith("..")
