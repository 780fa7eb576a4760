"""Immediate-children enumeration for card directories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from sd_playlist.errors import NotADirectoryPathError, PathNotFoundError
from sd_playlist.filesystem import Filesystem


@dataclass(frozen=True)
class DirEntry:
    """Child of a scanned directory."""

    path: str
    is_dir: bool

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


def iter_children(fs: Filesystem, path: str) -> Iterator[DirEntry]:
    """Yield immediate children of ``path`` in the filesystem's own order.

    The checks run eagerly so a missing or non-directory path raises before
    the first item is requested.
    """
    if not fs.exists(path):
        raise PathNotFoundError(path)
    if not fs.is_dir(path):
        raise NotADirectoryPathError(path)
    return _iter_entries(fs, path)


def _iter_entries(fs: Filesystem, path: str) -> Iterator[DirEntry]:
    for child_path, is_dir in fs.iter_children(path):
        yield DirEntry(path=child_path, is_dir=is_dir)


def iter_files(fs: Filesystem, path: str) -> Iterator[DirEntry]:
    return (entry for entry in iter_children(fs, path) if not entry.is_dir)


def iter_subdirectories(fs: Filesystem, path: str) -> Iterator[DirEntry]:
    return (entry for entry in iter_children(fs, path) if entry.is_dir)
