"""Playlist construction from files, directories, caches and m3u playlists."""

from __future__ import annotations

import logging
import posixpath
import time
from typing import Callable, Optional

from sd_playlist.cache import CacheWriter, PlaylistCache
from sd_playlist.config import AppConfig, chunk_size_for
from sd_playlist.delimited_list import DelimitedList, encode_entry
from sd_playlist.directory import iter_files
from sd_playlist.errors import (
    EmptyCacheFileError,
    OutOfMemoryError,
    PathNotFoundError,
    PlaylistError,
)
from sd_playlist.filename_filter import is_valid
from sd_playlist.filesystem import Filesystem, normalize_device_path
from sd_playlist.m3u import parse_m3u
from sd_playlist.memory import MemoryPool
from sd_playlist.playlist import Playlist, PlayMode
from sd_playlist.random_picker import RandomSubdirectoryPicker

logger = logging.getLogger(__name__)

# Bytes charged per playlist slot, the pointer width on the controller.
ENTRY_SLOT_BYTES = 4


def _no_fault() -> None:
    return None


class PlaylistBuilder:
    """Builds one playlist at a time for the player.

    The builder keeps track of the playlist it produced last and releases its
    memory reservation before building the next one. Instances are not safe
    to share between threads.
    """

    def __init__(
        self,
        fs: Filesystem,
        *,
        config: Optional[AppConfig] = None,
        pool: Optional[MemoryPool] = None,
        on_fault: Callable[[], None] = _no_fault,
        picker: Optional[RandomSubdirectoryPicker] = None,
    ) -> None:
        self._fs = fs
        self._config = config if config is not None else AppConfig()
        if pool is None:
            pool = MemoryPool(
                self._config.memory_limit, extended=self._config.extended_memory
            )
        self._pool = pool
        self._on_fault = on_fault
        self._cache = PlaylistCache(fs, filename=self._config.cache_filename)
        self._picker = (
            picker
            if picker is not None
            else RandomSubdirectoryPicker(fs, pool=pool, on_fault=on_fault)
        )
        self._current: Optional[Playlist] = None

    @property
    def pool(self) -> MemoryPool:
        return self._pool

    @property
    def cache(self) -> PlaylistCache:
        return self._cache

    @property
    def current(self) -> Optional[Playlist]:
        return self._current

    def release(self) -> None:
        """Drop the reservation held by the last playlist."""
        if self._current is None:
            return
        logger.debug("Releasing memory of old playlist")
        self._pool.free(self._current.reserved_bytes)
        self._current = None

    def build(self, path: str, mode: PlayMode) -> Optional[Playlist]:
        """Build a playlist for ``path``; None means no playable content."""
        started = time.monotonic()
        self.release()
        try:
            playlist = self._build(normalize_device_path(path), mode)
        except OutOfMemoryError as exc:
            logger.error("Unable to allocate memory for playlist: %s", exc)
            self._on_fault()
            return None
        except PlaylistError as exc:
            logger.error("%s", exc)
            return None
        except OSError:
            logger.exception("Storage error while building playlist for %s", path)
            return None
        if playlist is None:
            return None
        self._current = playlist
        logger.info("Number of valid files: %d", playlist.count)
        logger.debug(
            "Build playlist finished: %d ms",
            int((time.monotonic() - started) * 1000),
        )
        return playlist

    def build_for_mode(self, path: str, mode: PlayMode) -> Optional[Playlist]:
        """Build for ``mode``, picking a random subdirectory first if needed."""
        if mode.picks_random_subdirectory:
            picked = self._picker.pick(normalize_device_path(path))
            if picked is None:
                return None
            path = picked
        return self.build(path, mode)

    def _build(self, path: str, mode: PlayMode) -> Optional[Playlist]:
        if not self._fs.exists(path):
            raise PathNotFoundError(path)
        if mode == PlayMode.LOCAL_M3U:
            serialized = self._read_m3u(path)
            if serialized is None:
                return None
        elif not self._fs.is_dir(path):
            return self._single_file(path)
        else:
            serialized = self._read_directory(path, mode)
        with serialized:
            return self._materialize(serialized)

    def _single_file(self, path: str) -> Playlist:
        logger.info("File mode detected: %s", path)
        if not is_valid(path):
            logger.warning("Unsupported file type: %s", path)
            return Playlist.empty()
        return self._materialize_entries([path])

    def _read_m3u(self, path: str) -> Optional[DelimitedList]:
        if self._fs.is_dir(path) or self._fs.size(path) < 1:
            logger.error("Not a non-empty m3u file: %s", path)
            return None
        logger.info("Playlist generation mode: m3u")
        chunk_size = chunk_size_for("m3u", self._pool.extended)
        with self._fs.open_read(path) as handle:
            return parse_m3u(
                handle,
                chunk_size=chunk_size,
                pool=self._pool,
                base_dir=posixpath.dirname(path),
            )

    def _read_directory(self, path: str, mode: PlayMode) -> DelimitedList:
        use_cache = self._config.cache_enabled and mode.uses_cache
        cache_path = self._cache.path_for(path)
        if use_cache and self._cache.exists(cache_path):
            try:
                serialized = self._cache.read(
                    cache_path,
                    chunk_size=chunk_size_for("scan", self._pool.extended),
                    pool=self._pool,
                )
            except EmptyCacheFileError as exc:
                logger.error("%s", exc)
            else:
                logger.info("Playlist generation mode: cached")
                return serialized
        logger.info("Playlist generation mode: uncached")
        return self._scan(path, cache_path if use_cache else None)

    def _scan(self, path: str, cache_path: Optional[str]) -> DelimitedList:
        files = iter_files(self._fs, path)
        serialized = DelimitedList(
            chunk_size_for("scan", self._pool.extended), self._pool
        )
        writer = self._open_cache_writer(cache_path)
        try:
            for entry in files:
                if not is_valid(entry.path):
                    continue
                if serialized.delimiter in entry.path:
                    logger.warning(
                        "Skipping %s: name contains reserved %r",
                        entry.path,
                        serialized.delimiter,
                    )
                    continue
                serialized.append(entry.path)
                if writer is not None:
                    writer = self._write_cache_entry(writer, entry.path)
        except BaseException:
            serialized.release()
            if writer is not None:
                writer.close()
                self._truncate_cache(writer.path)
            raise
        if writer is not None:
            writer.close()
            logger.debug("Wrote %d entries to %s", writer.written, writer.path)
        return serialized

    def _open_cache_writer(self, cache_path: Optional[str]) -> Optional[CacheWriter]:
        if cache_path is None:
            return None
        try:
            return self._cache.open_writer(cache_path)
        except OSError:
            logger.exception("Unable to create playlist cache %s", cache_path)
            return None

    def _write_cache_entry(
        self, writer: CacheWriter, entry: str
    ) -> Optional[CacheWriter]:
        try:
            writer.write_entry(entry)
        except OSError:
            logger.exception("Writing playlist cache %s failed", writer.path)
            writer.close()
            self._truncate_cache(writer.path)
            return None
        return writer

    def _truncate_cache(self, cache_path: str) -> None:
        # an empty cache file is ignored on read, so a partial one must not stay
        try:
            self._fs.open_write(cache_path).close()
        except OSError:
            logger.exception("Unable to reset playlist cache %s", cache_path)

    def _materialize(self, serialized: DelimitedList) -> Playlist:
        count = serialized.count_entries()
        return self._materialize_entries(serialized, count)

    def _materialize_entries(
        self, entries: DelimitedList | list[str], count: Optional[int] = None
    ) -> Playlist:
        if count is None:
            count = len(entries)
        reserved = self._pool.allocate(count * ENTRY_SLOT_BYTES)
        items: list[str] = []
        try:
            for entry in entries:
                reserved += self._pool.allocate(len(encode_entry(entry)) + 1)
                items.append(entry)
        except OutOfMemoryError:
            self._pool.free(reserved)
            raise
        return Playlist(entries=tuple(items), count=count, reserved_bytes=reserved)
