"""Playlist result and play mode modeling."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional


class PlayMode(IntEnum):
    """Playback strategy selected for a card or button."""

    NO_PLAYLIST = 0
    SINGLE_TRACK = 1
    SINGLE_TRACK_LOOP = 2
    AUDIOBOOK = 3
    AUDIOBOOK_LOOP = 4
    ALL_TRACKS_OF_DIR_SORTED = 5
    ALL_TRACKS_OF_DIR_RANDOM = 6
    ALL_TRACKS_OF_DIR_SORTED_LOOP = 7
    WEBSTREAM = 8
    ALL_TRACKS_OF_DIR_RANDOM_LOOP = 9
    LOCAL_M3U = 11
    SINGLE_TRACK_OF_DIR_RANDOM = 12
    RANDOM_SUBDIRECTORY_OF_DIRECTORY = 13
    RANDOM_SUBDIRECTORY_OF_DIRECTORY_ALL_TRACKS_OF_DIR_RANDOM = 14

    @property
    def uses_cache(self) -> bool:
        return self not in {PlayMode.SINGLE_TRACK, PlayMode.SINGLE_TRACK_LOOP}

    @property
    def picks_random_subdirectory(self) -> bool:
        return self in {
            PlayMode.RANDOM_SUBDIRECTORY_OF_DIRECTORY,
            PlayMode.RANDOM_SUBDIRECTORY_OF_DIRECTORY_ALL_TRACKS_OF_DIR_RANDOM,
        }

    @classmethod
    def parse(cls, value: str) -> Optional[PlayMode]:
        """Look up a mode by name (case-insensitive) or numeric value."""
        text = value.strip()
        if text.isdigit():
            try:
                return cls(int(text))
            except ValueError:
                return None
        key = text.upper().replace("-", "_")
        return cls.__members__.get(key)


@dataclass(frozen=True)
class Playlist:
    """Ordered playlist entries with an explicit item count."""

    entries: tuple[str, ...]
    count: int
    reserved_bytes: int = field(default=0, compare=False, repr=False)

    @classmethod
    def empty(cls) -> Playlist:
        return cls(entries=(), count=0)

    def is_empty(self) -> bool:
        return self.count == 0

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> str:
        return self.entries[index]
