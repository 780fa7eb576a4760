"""M3U/M3U8 parsing into delimited lists."""

from __future__ import annotations

import io
import posixpath
from typing import BinaryIO, Optional

from sd_playlist.delimited_list import DELIMITER, ENCODING_ERRORS, DelimitedList
from sd_playlist.filesystem import normalize_device_path
from sd_playlist.memory import MemoryPool


def parse_m3u(
    stream: BinaryIO,
    *,
    chunk_size: int,
    pool: Optional[MemoryPool] = None,
    base_dir: Optional[str] = None,
    delimiter: str = DELIMITER,
) -> DelimitedList:
    """Read playlist lines from ``stream``, skipping comments and blanks.

    ``\\n``, ``\\r`` and ``\\r\\n`` all end a line. Relative entries are
    resolved against ``base_dir`` when given. The caller owns the returned
    list and must release it.
    """
    entries = DelimitedList(chunk_size, pool, delimiter=delimiter)
    text = io.TextIOWrapper(
        stream, encoding="utf-8-sig", errors=ENCODING_ERRORS, newline=None
    )
    try:
        for line in text:
            entry = _clean_line(line, delimiter)
            if entry is None:
                continue
            entries.append(_resolve(entry, base_dir))
    except BaseException:
        entries.release()
        raise
    finally:
        text.detach()
    return entries


def _clean_line(line: str, delimiter: str) -> Optional[str]:
    entry = line.strip()
    if not entry or entry.startswith("#"):
        return None
    # the delimiter cannot be stored, so anything after it is dropped
    if delimiter in entry:
        entry = entry.split(delimiter, 1)[0].strip()
    return entry or None


def _resolve(entry: str, base_dir: Optional[str]) -> str:
    if "://" in entry:
        return entry
    entry = entry.replace("\\", "/")
    if entry.startswith("/") or base_dir is None:
        return entry
    return normalize_device_path(posixpath.join(base_dir, entry))
