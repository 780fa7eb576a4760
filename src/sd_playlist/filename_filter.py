"""Filename eligibility checks for playlist entries."""

from __future__ import annotations

AUDIO_EXTENSIONS = (".mp3", ".aac", ".m4a", ".wav", ".flac", ".ogg", ".opus")
M3U_EXTENSIONS = (".m3u", ".m3u8")
PLAYLIST_EXTENSIONS = M3U_EXTENSIONS + (".pls", ".asx")
SUPPORTED_EXTENSIONS = AUDIO_EXTENSIONS + PLAYLIST_EXTENSIONS


def is_valid(path: str) -> bool:
    """Return True when ``path`` names a playable, non-hidden file."""
    lowered = path.lower()
    name = lowered.rsplit("/", 1)[-1]
    if name.startswith("."):
        return False
    return lowered.endswith(SUPPORTED_EXTENSIONS)


def is_m3u_file(path: str) -> bool:
    """Only m3u playlists can be read line by line; PLS and ASX cannot."""
    return path.lower().endswith(M3U_EXTENSIONS)
