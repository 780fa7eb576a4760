"""Per-directory playlist cache files.

A cache file sits inside the scanned directory and stores the delimited list
from the last scan, nothing else. Existence (plus a non-zero size) is the only
validity check: adding or removing files afterwards does not invalidate it,
so a stale cache keeps being served until it is deleted or rewritten by a
rescan.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import BinaryIO, Iterable, Optional

from sd_playlist.config import CACHE_FILENAME
from sd_playlist.delimited_list import DELIMITER, DelimitedList, encode_entry
from sd_playlist.errors import EmptyCacheFileError
from sd_playlist.filesystem import Filesystem, join_device_path
from sd_playlist.memory import MemoryPool

logger = logging.getLogger(__name__)


class CacheWriter:
    """Streams entries into a cache file as they are discovered."""

    def __init__(self, handle: BinaryIO, path: str, delimiter: str = DELIMITER):
        self._handle = handle
        self._delimiter = delimiter.encode("utf-8")
        self.path = path
        self.written = 0

    def write_entry(self, entry: str) -> None:
        self._handle.write(self._delimiter + encode_entry(entry))
        self.written += 1

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> CacheWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class PlaylistCache:
    """Reads and writes ``<directory>/<cache filename>`` files."""

    def __init__(
        self,
        fs: Filesystem,
        *,
        filename: str = CACHE_FILENAME,
        delimiter: str = DELIMITER,
    ) -> None:
        self._fs = fs
        self._filename = filename
        self._delimiter = delimiter

    @property
    def filename(self) -> str:
        return self._filename

    def path_for(self, directory: str) -> str:
        return join_device_path(directory, self._filename)

    def exists(self, cache_path: str) -> bool:
        return self._fs.exists(cache_path)

    def read(
        self,
        cache_path: str,
        *,
        chunk_size: int,
        pool: Optional[MemoryPool] = None,
    ) -> DelimitedList:
        """Load a cache file into a new delimited list.

        Raises ``EmptyCacheFileError`` for a zero-length file so the caller can
        rebuild from the directory instead.
        """
        if self._fs.size(cache_path) < 1:
            raise EmptyCacheFileError(cache_path)
        with self._fs.open_read(cache_path) as handle:
            data = handle.read()
        if not data:
            raise EmptyCacheFileError(cache_path)
        return DelimitedList.from_bytes(
            data, chunk_size, pool, delimiter=self._delimiter
        )

    def open_writer(self, cache_path: str) -> CacheWriter:
        """Create (or truncate) the cache file for streaming writes."""
        handle = self._fs.open_write(cache_path)
        return CacheWriter(handle, cache_path, self._delimiter)

    def write(self, cache_path: str, entries: Iterable[str]) -> int:
        """Write all ``entries`` and return how many were written."""
        with self.open_writer(cache_path) as writer:
            for entry in entries:
                writer.write_entry(entry)
            return writer.written
