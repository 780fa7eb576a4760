"""Tests for playlist values and play modes."""

from __future__ import annotations

import pytest

from sd_playlist.playlist import Playlist, PlayMode


def test_playlist_sequence_behaviour() -> None:
    playlist = Playlist(entries=("/a.mp3", "/b.mp3"), count=2)
    assert len(playlist) == 2
    assert list(playlist) == ["/a.mp3", "/b.mp3"]
    assert playlist[1] == "/b.mp3"
    assert not playlist.is_empty()


def test_empty_playlist() -> None:
    playlist = Playlist.empty()
    assert playlist.count == 0
    assert playlist.is_empty()


def test_reserved_bytes_ignored_in_equality() -> None:
    left = Playlist(entries=("/a.mp3",), count=1, reserved_bytes=10)
    right = Playlist(entries=("/a.mp3",), count=1, reserved_bytes=99)
    assert left == right


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (PlayMode.SINGLE_TRACK, False),
        (PlayMode.SINGLE_TRACK_LOOP, False),
        (PlayMode.ALL_TRACKS_OF_DIR_SORTED, True),
        (PlayMode.ALL_TRACKS_OF_DIR_RANDOM_LOOP, True),
        (PlayMode.AUDIOBOOK, True),
    ],
)
def test_cache_usage_by_mode(mode: PlayMode, expected: bool) -> None:
    assert mode.uses_cache is expected


def test_random_subdirectory_modes() -> None:
    assert PlayMode.RANDOM_SUBDIRECTORY_OF_DIRECTORY.picks_random_subdirectory
    assert not PlayMode.LOCAL_M3U.picks_random_subdirectory


def test_parse_mode() -> None:
    assert PlayMode.parse("local-m3u") is PlayMode.LOCAL_M3U
    assert PlayMode.parse("single_track") is PlayMode.SINGLE_TRACK
    assert PlayMode.parse("5") is PlayMode.ALL_TRACKS_OF_DIR_SORTED
    assert PlayMode.parse("10") is None
    assert PlayMode.parse("shuffle-everything") is None
