"""Tests for the mounted-card filesystem."""

from __future__ import annotations

from pathlib import Path

import pytest

from sd_playlist.filesystem import (
    LocalFilesystem,
    join_device_path,
    normalize_device_path,
)


def test_normalize_device_path() -> None:
    assert normalize_device_path("") == "/"
    assert normalize_device_path("music") == "/music"
    assert normalize_device_path("//music/./album/") == "/music/album"
    assert normalize_device_path("/../../etc") == "/etc"


def test_join_device_path() -> None:
    assert join_device_path("/", "music") == "/music"
    assert join_device_path("/music", "a.mp3") == "/music/a.mp3"


def test_host_path_stays_under_mount_root(tmp_path: Path) -> None:
    fs = LocalFilesystem(tmp_path)
    assert fs.host_path("/") == tmp_path
    assert fs.host_path("/music/a.mp3") == tmp_path / "music" / "a.mp3"
    assert fs.host_path("/../outside") == tmp_path / "outside"


def test_basic_queries(tmp_path: Path) -> None:
    (tmp_path / "music").mkdir()
    (tmp_path / "music" / "a.mp3").write_bytes(b"12345")
    fs = LocalFilesystem(tmp_path)
    assert fs.exists("/music")
    assert fs.is_dir("/music")
    assert not fs.is_dir("/music/a.mp3")
    assert fs.size("/music/a.mp3") == 5
    assert not fs.exists("/missing")


def test_read_write_round_trip(tmp_path: Path) -> None:
    fs = LocalFilesystem(tmp_path)
    with fs.open_write("/cache.csv") as handle:
        handle.write(b"#/a.mp3")
    with fs.open_read("/cache.csv") as handle:
        assert handle.read() == b"#/a.mp3"


def test_iter_children_lists_immediate_entries(tmp_path: Path) -> None:
    (tmp_path / "music").mkdir()
    (tmp_path / "music" / "album").mkdir()
    (tmp_path / "music" / "album" / "deep.mp3").write_bytes(b"x")
    (tmp_path / "music" / "a.mp3").write_bytes(b"x")
    fs = LocalFilesystem(tmp_path)
    children = sorted(fs.iter_children("/music"))
    assert children == [("/music/a.mp3", False), ("/music/album", True)]


def test_iter_children_missing_directory(tmp_path: Path) -> None:
    fs = LocalFilesystem(tmp_path)
    with pytest.raises(OSError):
        list(fs.iter_children("/missing"))


def test_calls_update_last_activity(tmp_path: Path, monkeypatch) -> None:
    fs = LocalFilesystem(tmp_path)
    monkeypatch.setattr("sd_playlist.filesystem.time.monotonic", lambda: 1234.0)
    fs.exists("/")
    assert fs.last_activity() == 1234.0
