"""Storage stall detection.

Every filesystem call blocks its caller, so an unresponsive card freezes a
playlist build without any error. The watchdog polls the filesystem's last
activity timestamp from a daemon thread and dumps all stacks to
``hangdump.log`` when it stops moving.
"""

from __future__ import annotations

import faulthandler
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional, TextIO

logger = logging.getLogger(__name__)

_DUMP_FILE: Optional[TextIO] = None
_LOCK = threading.Lock()


def enable_faulthandler(log_path: Path) -> Path:
    """Enable faulthandler next to ``log_path`` and return the dump path."""
    dump_path = log_path.parent / "hangdump.log"
    global _DUMP_FILE
    try:
        dump_path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(dump_path, "a", encoding="utf-8")
    except OSError:
        logger.warning("Unable to open %s", dump_path)
        return dump_path
    with _LOCK:
        _DUMP_FILE = handle
    faulthandler.enable(file=handle, all_threads=True)
    return dump_path


def dump_threads(label: str) -> None:
    """Write a labelled stack dump of all threads."""
    stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    with _LOCK:
        handle = _DUMP_FILE
        if handle is None:
            return
        try:
            handle.write(f"\n[{stamp}] {label}\n")
            faulthandler.dump_traceback(file=handle, all_threads=True)
            handle.flush()
        except (OSError, ValueError):
            logger.warning("Unable to write stack dump for %s", label)


class StorageWatchdog:
    """Dumps thread stacks while storage activity has stalled."""

    def __init__(
        self,
        get_last_activity: Callable[[], float],
        *,
        threshold_seconds: float = 10.0,
        repeat_seconds: float = 30.0,
        poll_seconds: float = 1.0,
    ) -> None:
        self._get_last_activity = get_last_activity
        self._threshold_seconds = threshold_seconds
        self._repeat_seconds = repeat_seconds
        self._poll_seconds = poll_seconds
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="StorageWatchdog", daemon=True
        )
        self._last_dump = 0.0

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    def __enter__(self) -> StorageWatchdog:
        self.start()
        return self

    def __exit__(self, *_exc: object) -> None:
        self.stop()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            now = time.monotonic()
            stalled_for = now - self._get_last_activity()
            if (
                stalled_for > self._threshold_seconds
                and now - self._last_dump > self._repeat_seconds
            ):
                self._last_dump = now
                logger.warning("Storage stalled for %.1f s", stalled_for)
                dump_threads("storage stalled")
            self._stop_event.wait(self._poll_seconds)
