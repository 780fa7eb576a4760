"""Audio tag lookup used when listing playlists."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from mutagen import File as MutagenFile
from mutagen import MutagenError

ARTIST_KEYS = ("artist", "ARTIST", "TPE1", "TPE2", "\xa9ART", "aART")
TITLE_KEYS = ("title", "TITLE", "TIT2", "\xa9nam")


@dataclass(frozen=True)
class TrackMeta:
    artist: str | None
    title: str | None


_NO_META = TrackMeta(artist=None, title=None)


def _extract_text(value: object | None) -> str | None:
    if value is None:
        return None
    value = getattr(value, "text", value)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    if isinstance(value, bytes):
        text = value.decode("utf-8", errors="replace")
    else:
        text = str(value)
    text = text.strip()
    return text or None


def _read_tag(tags: object | None, keys: tuple[str, ...]) -> str | None:
    getter = getattr(tags, "get", None)
    if getter is None:
        return None
    for key in keys:
        try:
            value = getter(key)
        except (KeyError, ValueError):
            continue
        text = _extract_text(value)
        if text:
            return text
    return None


def read_track_meta(path: Path) -> TrackMeta:
    """Best-effort tag extraction; unreadable files yield empty metadata."""
    try:
        audio = MutagenFile(path)
    except (MutagenError, OSError):
        return _NO_META
    if not audio:
        return _NO_META
    tags = getattr(audio, "tags", None)
    return TrackMeta(
        artist=_read_tag(tags, ARTIST_KEYS),
        title=_read_tag(tags, TITLE_KEYS),
    )


def format_display_title(entry: str, meta: TrackMeta | None = None) -> str:
    """Return "artist – title" when tagged, else the entry's file name."""
    if meta and meta.title:
        if meta.artist:
            return f"{meta.artist} – {meta.title}"
        return meta.title
    return entry.rsplit("/", 1)[-1]
