"""Configuration persistence for sd-playlist."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional

logger = logging.getLogger(__name__)

CACHE_FILENAME = "playlistcache.csv"

# Chunk sizes used when growing delimited lists, in bytes.
EXTENDED_CHUNK_SIZE = 65535
SCAN_CHUNK_SIZE = 4096
SMALL_CHUNK_SIZE = 1024

ChunkPurpose = Literal["scan", "subdirectories", "m3u"]


@dataclass(frozen=True)
class AppConfig:
    """Immutable user configuration loaded from disk."""

    mount_root: Optional[str] = None
    extended_memory: bool = False
    cache_enabled: bool = True
    cache_filename: str = CACHE_FILENAME
    memory_limit: Optional[int] = None
    last_play_mode: str = "ALL_TRACKS_OF_DIR_SORTED"


def chunk_size_for(purpose: ChunkPurpose, extended: bool) -> int:
    """Return the growth chunk for a delimited list built for ``purpose``."""
    if extended:
        return EXTENDED_CHUNK_SIZE
    if purpose == "scan":
        return SCAN_CHUNK_SIZE
    return SMALL_CHUNK_SIZE


def get_config_dir(app_name: str = "sd-playlist") -> Path:
    """Return the per-user config directory for the current platform."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            root = Path(base)
        else:
            root = Path.home() / "AppData" / "Roaming"
        return _ensure_dir(root / app_name)
    elif os.name == "posix":
        if _is_macos():
            return _ensure_dir(
                Path.home() / "Library" / "Application Support" / app_name
            )
        base = os.environ.get("XDG_CONFIG_HOME")
        root = Path(base) if base else Path.home() / ".config"
        return _ensure_dir(root / app_name)
    else:
        return _ensure_dir(Path.home() / ".config" / app_name)


def load_config() -> AppConfig:
    """Load configuration from disk, falling back to defaults on error."""
    path = get_config_path()
    if not path.exists():
        return AppConfig()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.exception("Failed to load config from %s", path)
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()
    return _config_from_mapping(raw)


def save_config(cfg: AppConfig) -> None:
    """Persist configuration to disk atomically."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    data = {
        "mount_root": cfg.mount_root,
        "extended_memory": cfg.extended_memory,
        "cache_enabled": cfg.cache_enabled,
        "cache_filename": cfg.cache_filename,
        "memory_limit": cfg.memory_limit,
        "last_play_mode": cfg.last_play_mode,
    }
    temp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    os.replace(temp_path, path)


def get_config_path() -> Path:
    """Return the full config file path."""
    return get_config_dir() / "config.json"


def _ensure_dir(path: Path) -> Path:
    """Create the directory if needed and return the path."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def _is_macos() -> bool:
    """Return True when running on macOS."""
    return os.uname().sysname == "Darwin" if hasattr(os, "uname") else False


def _get_bool(raw: dict[str, Any], key: str, default: bool) -> bool:
    """Fetch a boolean value with fallback for invalid types."""
    value = raw.get(key, default)
    if isinstance(value, bool):
        return value
    return default


def _get_optional_int(
    raw: dict[str, Any],
    key: str,
    *,
    min_value: int | None = None,
) -> int | None:
    """Fetch an optional integer, discarding invalid or too-small values."""
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if min_value is not None and value < min_value:
        return None
    return value


def _get_str(
    raw: dict[str, Any],
    key: str,
    default: str,
    *,
    allow_empty: bool = False,
) -> str:
    """Fetch a string value, optionally allowing empty strings."""
    value = raw.get(key, default)
    if not isinstance(value, str):
        return default
    if not value and not allow_empty:
        return default
    return value


def _config_from_mapping(raw: dict[str, Any]) -> AppConfig:
    """Normalize raw JSON data into an AppConfig."""
    mount_root = raw.get("mount_root")
    if mount_root is not None and not isinstance(mount_root, str):
        mount_root = None
    cache_filename = _get_str(raw, "cache_filename", CACHE_FILENAME)
    if "/" in cache_filename or cache_filename in {".", ".."}:
        cache_filename = CACHE_FILENAME
    return AppConfig(
        mount_root=mount_root,
        extended_memory=_get_bool(raw, "extended_memory", False),
        cache_enabled=_get_bool(raw, "cache_enabled", True),
        cache_filename=cache_filename,
        memory_limit=_get_optional_int(raw, "memory_limit", min_value=1),
        last_play_mode=_get_str(raw, "last_play_mode", "ALL_TRACKS_OF_DIR_SORTED"),
    )
