"""Growable delimiter-joined string buffer.

One format serves three purposes: collecting directory scans, persisting
playlist caches and normalizing m3u files. Every entry is stored as UTF-8
(undecodable bytes kept as they are) followed by the delimiter, so
``a#b#c#`` holds three entries. Capacity is charged in whole chunks
against a ``MemoryPool`` and never shrinks until the list is released.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Iterator, Optional

from sd_playlist.memory import MemoryPool

logger = logging.getLogger(__name__)

DELIMITER = "#"

# Names that are not valid UTF-8 arrive as surrogate escapes and go back
# to the card as the original bytes.
ENCODING_ERRORS = "surrogateescape"


def encode_entry(entry: str) -> bytes:
    return entry.encode("utf-8", errors=ENCODING_ERRORS)


def decode_entry(data: bytes) -> str:
    return data.decode("utf-8", errors=ENCODING_ERRORS)


class DelimitedList:
    """Flat sequence of non-empty strings joined by a reserved delimiter."""

    def __init__(
        self,
        chunk_size: int,
        pool: Optional[MemoryPool] = None,
        *,
        delimiter: str = DELIMITER,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if len(delimiter.encode("utf-8")) != 1:
            raise ValueError("delimiter must be a single byte")
        self._pool = pool if pool is not None else MemoryPool()
        self._chunk_size = chunk_size
        self._delimiter = delimiter
        self._delimiter_byte = delimiter.encode("utf-8")[0]
        self._buffer = bytearray()
        self._count = 0
        self._chunks = 0
        self._released = False
        self._pool.allocate(chunk_size)
        self._chunks = 1

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        chunk_size: int,
        pool: Optional[MemoryPool] = None,
        *,
        delimiter: str = DELIMITER,
    ) -> DelimitedList:
        """Load serialized entries, skipping empty segments.

        Accepts both the leading-delimiter form written by older caches
        (``#a#b``) and the terminated form produced by ``to_bytes``.
        """
        instance = cls(chunk_size, pool, delimiter=delimiter)
        try:
            for segment in data.split(delimiter.encode("utf-8")):
                if segment:
                    instance._append_encoded(segment)
        except BaseException:
            instance.release()
            raise
        return instance

    @property
    def delimiter(self) -> str:
        return self._delimiter

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def capacity(self) -> int:
        return self._chunks * self._chunk_size

    @property
    def released(self) -> bool:
        return self._released

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[str]:
        return self.iter_entries()

    def __enter__(self) -> DelimitedList:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def append(self, entry: str) -> None:
        """Append one entry, growing capacity by a chunk when needed.

        Empty entries are ignored. Raises ``OutOfMemoryError`` when the pool
        refuses to grow; the list keeps its previous contents in that case.
        """
        if not entry:
            return
        if self._delimiter in entry:
            raise ValueError(f"Entry contains reserved delimiter: {entry!r}")
        self._append_encoded(encode_entry(entry))

    def iter_entries(self) -> Iterator[str]:
        """Yield entries in insertion order; safe to call repeatedly."""
        buffer = self._buffer
        start = 0
        while True:
            end = buffer.find(self._delimiter_byte, start)
            if end < 0:
                return
            if end > start:
                yield decode_entry(buffer[start:end])
            start = end + 1

    def count_entries(self) -> int:
        """Count entries by scanning for delimiters."""
        return self._buffer.count(self._delimiter_byte)

    def entry_at(self, ordinal: int, limit: int | None = None) -> str:
        """Return the entry preceding the ``ordinal``-th delimiter (1-based).

        Characters beyond ``limit`` are dropped.
        """
        if ordinal < 1:
            raise IndexError("ordinal is 1-based")
        seen = 0
        segment = bytearray()
        for byte in self._buffer:
            if byte == self._delimiter_byte:
                seen += 1
                if seen >= ordinal:
                    break
                continue
            if seen == ordinal - 1:
                segment.append(byte)
        if seen < ordinal:
            raise IndexError(f"no entry at position {ordinal}")
        text = decode_entry(bytes(segment))
        if limit is not None:
            text = text[:limit]
        return text

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)

    def release(self) -> None:
        """Return the buffer's capacity to the pool. Idempotent."""
        if self._released:
            return
        self._pool.free(self.capacity)
        self._buffer = bytearray()
        self._count = 0
        self._chunks = 0
        self._released = True

    def _append_encoded(self, data: bytes) -> None:
        if self._released:
            raise RuntimeError("DelimitedList has been released")
        needed = len(self._buffer) + len(data) + 2
        chunks = self._chunks
        while needed >= chunks * self._chunk_size:
            chunks += 1
        if chunks != self._chunks:
            logger.debug("Realloc called: %s -> %s chunks", self._chunks, chunks)
            self._pool.reallocate(self.capacity, chunks * self._chunk_size)
            self._chunks = chunks
        self._buffer += data
        self._buffer.append(self._delimiter_byte)
        self._count += 1
