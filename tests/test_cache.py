"""Tests for playlist cache files."""

from __future__ import annotations

import pytest

from sd_playlist.cache import PlaylistCache
from sd_playlist.config import CACHE_FILENAME
from sd_playlist.errors import EmptyCacheFileError
from sd_playlist.memory import MemoryPool


def test_path_for_appends_reserved_name(fake_fs) -> None:
    cache = PlaylistCache(fake_fs)
    assert cache.path_for("/music") == f"/music/{CACHE_FILENAME}"
    assert cache.path_for("/") == f"/{CACHE_FILENAME}"


def test_write_streams_leading_delimiters(fake_fs) -> None:
    fake_fs.add_dir("/music")
    cache = PlaylistCache(fake_fs)
    path = cache.path_for("/music")
    written = cache.write(path, iter(["/music/a.mp3", "/music/b.mp3"]))
    assert written == 2
    assert fake_fs.files[path] == b"#/music/a.mp3#/music/b.mp3"
    assert cache.exists(path)


def test_writer_flushes_each_entry(fake_fs) -> None:
    fake_fs.add_dir("/music")
    cache = PlaylistCache(fake_fs)
    path = cache.path_for("/music")
    with cache.open_writer(path) as writer:
        writer.write_entry("/music/a.mp3")
        assert fake_fs.files[path] == b"#/music/a.mp3"


def test_read_returns_delimited_list(fake_fs) -> None:
    fake_fs.add_file("/music/playlistcache.csv", b"#/music/b.mp3#/music/a.mp3")
    cache = PlaylistCache(fake_fs)
    pool = MemoryPool()
    entries = cache.read("/music/playlistcache.csv", chunk_size=64, pool=pool)
    assert list(entries) == ["/music/b.mp3", "/music/a.mp3"]
    entries.release()
    assert pool.in_use == 0


def test_read_empty_file_is_distinct_error(fake_fs) -> None:
    fake_fs.add_file("/music/playlistcache.csv", b"")
    cache = PlaylistCache(fake_fs)
    with pytest.raises(EmptyCacheFileError):
        cache.read("/music/playlistcache.csv", chunk_size=64)


def test_custom_filename(fake_fs) -> None:
    cache = PlaylistCache(fake_fs, filename="cache.txt")
    assert cache.filename == "cache.txt"
    assert cache.path_for("/x") == "/x/cache.txt"


def test_writer_keeps_undecodable_bytes(fake_fs) -> None:
    fake_fs.add_dir("/music")
    cache = PlaylistCache(fake_fs)
    path = cache.path_for("/music")
    cache.write(path, ["/music/Caf\udce9.mp3"])
    assert fake_fs.files[path] == b"#/music/Caf\xe9.mp3"
