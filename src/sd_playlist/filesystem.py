"""Filesystem capability used by the playlist core.

Paths handed to the core are device paths (``/music/album``), always
absolute and ``/``-separated, the way the card presents them to the player.
``LocalFilesystem`` maps them onto a host directory where the card is mounted.
"""

from __future__ import annotations

import os
import posixpath
import time
from pathlib import Path
from typing import BinaryIO, Iterator, Protocol


class Filesystem(Protocol):
    """Blocking operations the core needs from the storage device."""

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def size(self, path: str) -> int: ...

    def open_read(self, path: str) -> BinaryIO: ...

    def open_write(self, path: str) -> BinaryIO: ...

    def iter_children(self, path: str) -> Iterator[tuple[str, bool]]:
        """Yield ``(device_path, is_directory)`` for immediate children."""
        ...


def join_device_path(directory: str, name: str) -> str:
    if directory.endswith("/"):
        return directory + name
    return f"{directory}/{name}"


def normalize_device_path(path: str) -> str:
    """Return an absolute, normalized device path."""
    if not path:
        return "/"
    return posixpath.normpath("/" + path.lstrip("/"))


class LocalFilesystem:
    """Device filesystem backed by a mounted host directory."""

    def __init__(self, mount_root: Path) -> None:
        self._root = Path(mount_root)
        self._last_activity = time.monotonic()

    @property
    def mount_root(self) -> Path:
        return self._root

    def last_activity(self) -> float:
        """Monotonic timestamp of the most recent storage call."""
        return self._last_activity

    def host_path(self, path: str) -> Path:
        normalized = normalize_device_path(path)
        relative = normalized.lstrip("/")
        if not relative:
            return self._root
        return self._root.joinpath(*relative.split("/"))

    def exists(self, path: str) -> bool:
        self._touch()
        return self.host_path(path).exists()

    def is_dir(self, path: str) -> bool:
        self._touch()
        return self.host_path(path).is_dir()

    def size(self, path: str) -> int:
        self._touch()
        return self.host_path(path).stat().st_size

    def open_read(self, path: str) -> BinaryIO:
        self._touch()
        return open(self.host_path(path), "rb")

    def open_write(self, path: str) -> BinaryIO:
        self._touch()
        return open(self.host_path(path), "wb")

    def iter_children(self, path: str) -> Iterator[tuple[str, bool]]:
        self._touch()
        directory = normalize_device_path(path)
        with os.scandir(self.host_path(directory)) as entries:
            for entry in entries:
                self._touch()
                try:
                    is_dir = entry.is_dir()
                except OSError:
                    is_dir = False
                yield join_device_path(directory, entry.name), is_dir

    def _touch(self) -> None:
        self._last_activity = time.monotonic()
