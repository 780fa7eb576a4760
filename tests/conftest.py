"""Pytest configuration for sd-playlist."""

from __future__ import annotations

import io
import os
from pathlib import Path
from typing import Callable, Iterator

import pytest

from sd_playlist.filesystem import join_device_path, normalize_device_path


class _WriteHandle(io.BytesIO):
    def __init__(self, fs: FakeFilesystem, path: str) -> None:
        super().__init__()
        self._fs = fs
        self._path = path

    def write(self, data) -> int:  # type: ignore[override]
        if self._fs.fail_writes:
            raise OSError("card write failed")
        written = super().write(data)
        self._fs.files[self._path] = self.getvalue()
        return written

    def close(self) -> None:
        if not self.closed:
            self._fs.files[self._path] = self.getvalue()
        super().close()


class FakeFilesystem:
    """In-memory card that enumerates children in insertion order."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.children: dict[str, list[str]] = {"/": []}
        self.fail_writes = False
        self.fail_open_write = False

    def add_dir(self, path: str) -> str:
        path = normalize_device_path(path)
        if path in self.children:
            return path
        parent, _, _name = path.rpartition("/")
        self.add_dir(parent or "/")
        self._link(path)
        self.children[path] = []
        return path

    def add_file(self, path: str, data: bytes = b"audio") -> str:
        path = normalize_device_path(path)
        parent, _, _name = path.rpartition("/")
        self.add_dir(parent or "/")
        if path not in self.files:
            self._link(path)
        self.files[path] = data
        return path

    def _link(self, path: str) -> None:
        parent, _, name = path.rpartition("/")
        self.children[parent or "/"].append(name)

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.children

    def is_dir(self, path: str) -> bool:
        return path in self.children

    def size(self, path: str) -> int:
        return len(self.files[path])

    def open_read(self, path: str) -> io.BytesIO:
        if path not in self.files:
            raise FileNotFoundError(path)
        return io.BytesIO(self.files[path])

    def open_write(self, path: str) -> _WriteHandle:
        if self.fail_open_write:
            raise OSError("card is read-only")
        if path not in self.files:
            self.add_file(path, b"")
        self.files[path] = b""
        return _WriteHandle(self, path)

    def iter_children(self, path: str) -> Iterator[tuple[str, bool]]:
        for name in list(self.children[path]):
            child = join_device_path(path, name)
            yield child, child in self.children


@pytest.fixture
def fake_fs() -> FakeFilesystem:
    return FakeFilesystem()


@pytest.fixture
def raw_card(tmp_path: Path) -> Callable[[bytes, bool], bytes]:
    """Create card files or directories from raw (possibly non-UTF-8) names."""
    root = os.fsencode(tmp_path)

    def create(relative: bytes, is_dir: bool = False) -> bytes:
        target = os.path.join(root, relative.lstrip(b"/"))
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            if is_dir:
                os.mkdir(target)
            else:
                with open(target, "wb") as handle:
                    handle.write(b"x")
        except (OSError, ValueError):
            pytest.skip("filesystem rejects non-UTF-8 names")
        return target

    return create
