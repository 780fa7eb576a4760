"""Command-line interface for sd-playlist."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import random
import sys
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from sd_playlist.builder import PlaylistBuilder
from sd_playlist.config import AppConfig, load_config, save_config
from sd_playlist.delimited_list import encode_entry
from sd_playlist.filename_filter import is_m3u_file
from sd_playlist.filesystem import LocalFilesystem
from sd_playlist.hangwatch import StorageWatchdog, dump_threads, enable_faulthandler
from sd_playlist.logging_setup import init_logging, set_console_level
from sd_playlist.memory import MemoryPool
from sd_playlist.metadata import format_display_title, read_track_meta
from sd_playlist.playlist import Playlist, PlayMode
from sd_playlist.random_picker import RandomSubdirectoryPicker

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="sd-playlist", description="Build playlists from a mounted SD card"
    )
    parser.add_argument(
        "--root",
        default=None,
        help="Host directory the card is mounted at",
    )
    parser.add_argument(
        "--extended-memory",
        action="store_true",
        default=None,
        help="Use large buffer chunks as with external RAM",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Never read or write playlist cache files",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    build = commands.add_parser("build", help="Build and list a playlist")
    build.add_argument("path", help="Card path of a file, directory or m3u")
    build.add_argument("--mode", default=None, help="Play mode name or number")
    build.add_argument(
        "--titles", action="store_true", help="Show track titles from tags"
    )

    pick = commands.add_parser("pick", help="Pick a random subdirectory")
    pick.add_argument("path", help="Card path of the parent directory")
    pick.add_argument("--seed", type=int, default=None, help="Random seed")
    return parser


def resolve_mode(value: Optional[str], path: str, cfg: AppConfig) -> Optional[PlayMode]:
    """Pick the play mode from the argument, the path or the saved config."""
    if value is not None:
        return PlayMode.parse(value)
    if is_m3u_file(path):
        return PlayMode.LOCAL_M3U
    return PlayMode.parse(cfg.last_play_mode) or PlayMode.ALL_TRACKS_OF_DIR_SORTED


def display_text(entry: str) -> Text:
    """Terminal-safe rendering of a card path, shown literally."""
    return Text(encode_entry(entry).decode("utf-8", errors="replace"))


def render_playlist(
    console: Console,
    playlist: Playlist,
    fs: LocalFilesystem,
    *,
    titles: bool = False,
) -> None:
    table = Table(title=f"{playlist.count} item(s)")
    table.add_column("#", justify="right")
    table.add_column("Entry")
    if titles:
        table.add_column("Title")
    for index, entry in enumerate(playlist, start=1):
        row: list[str | Text] = [str(index), display_text(entry)]
        if titles:
            meta = read_track_meta(fs.host_path(entry))
            row.append(display_text(format_display_title(entry, meta)))
        table.add_row(*row)
    console.print(table)


def _config_with_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    changes: dict[str, object] = {}
    if args.root is not None:
        changes["mount_root"] = args.root
    if args.extended_memory is not None:
        changes["extended_memory"] = args.extended_memory
    if args.no_cache:
        changes["cache_enabled"] = False
    return dataclasses.replace(cfg, **changes)


def _run_build(
    args: argparse.Namespace,
    cfg: AppConfig,
    fs: LocalFilesystem,
    console: Console,
) -> int:
    mode = resolve_mode(args.mode, args.path, cfg)
    if mode is None:
        console.print(f"[red]Unknown play mode:[/red] {args.mode}")
        return 2

    def indicate_error() -> None:
        console.print("[bold red]Out of memory while building playlist[/bold red]")

    builder = PlaylistBuilder(fs, config=cfg, on_fault=indicate_error)
    with StorageWatchdog(fs.last_activity):
        playlist = builder.build_for_mode(args.path, mode)
    if playlist is None:
        console.print(f"[yellow]No playable content at {args.path}[/yellow]")
        return 1
    render_playlist(console, playlist, fs, titles=args.titles)
    if args.mode is not None and cfg.last_play_mode != mode.name:
        save_config(dataclasses.replace(load_config(), last_play_mode=mode.name))
    return 0


def _run_pick(
    args: argparse.Namespace,
    cfg: AppConfig,
    fs: LocalFilesystem,
    console: Console,
) -> int:
    pool = MemoryPool(cfg.memory_limit, extended=cfg.extended_memory)
    rng = random.Random(args.seed)
    picker = RandomSubdirectoryPicker(fs, pool=pool, rng=rng)
    with StorageWatchdog(fs.last_activity):
        picked = picker.pick(args.path)
    if picked is None:
        console.print(f"[yellow]No subdirectory found in {args.path}[/yellow]")
        return 1
    console.print(display_text(picked))
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    log_path = init_logging()
    enable_faulthandler(log_path)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        set_console_level(logging.DEBUG)

    def excepthook(exc_type, exc, tb) -> None:
        logger.exception("Uncaught exception", exc_info=(exc_type, exc, tb))
        dump_threads("uncaught exception")

    sys.excepthook = excepthook

    cfg = _config_with_overrides(load_config(), args)
    mount_root = Path(cfg.mount_root) if cfg.mount_root else Path.cwd()
    if not mount_root.is_dir():
        print(f"Mount root is not a directory: {mount_root}", file=sys.stderr)
        return 2
    fs = LocalFilesystem(mount_root)
    console = Console()

    if args.command == "pick":
        exit_code = _run_pick(args, cfg, fs, console)
    else:
        exit_code = _run_build(args, cfg, fs, console)
    logger.info("Exit code=%s", exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
