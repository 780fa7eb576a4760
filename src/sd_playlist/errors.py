"""Error types raised while building playlists."""

from __future__ import annotations


class PlaylistError(Exception):
    """Base class for playlist construction failures."""


class PathNotFoundError(PlaylistError):
    """Requested file or directory does not exist on the card."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File or directory does not exist: {path}")
        self.path = path


class NotADirectoryPathError(PlaylistError):
    """A directory was required but the path names a file."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Not a directory: {path}")
        self.path = path


class OutOfMemoryError(PlaylistError):
    """The memory pool refused an allocation or reallocation."""

    def __init__(self, requested: int, available: int | None = None) -> None:
        if available is None:
            message = f"Unable to allocate {requested} bytes"
        else:
            message = f"Unable to allocate {requested} bytes ({available} available)"
        super().__init__(message)
        self.requested = requested
        self.available = available


class EmptyCacheFileError(PlaylistError):
    """Cache file exists but holds no data."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Playlist cache file found but it has 0 bytes: {path}")
        self.path = path
