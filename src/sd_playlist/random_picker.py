"""Random subdirectory selection."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional

from sd_playlist.config import chunk_size_for
from sd_playlist.delimited_list import DelimitedList
from sd_playlist.directory import iter_subdirectories
from sd_playlist.errors import OutOfMemoryError, PlaylistError
from sd_playlist.filesystem import Filesystem
from sd_playlist.memory import MemoryPool

logger = logging.getLogger(__name__)

MAX_PICKED_PATH_LENGTH = 254


def _no_fault() -> None:
    return None


class RandomSubdirectoryPicker:
    """Pick one immediate subdirectory uniformly at random."""

    def __init__(
        self,
        fs: Filesystem,
        *,
        pool: Optional[MemoryPool] = None,
        rng: Optional[random.Random] = None,
        on_fault: Callable[[], None] = _no_fault,
    ) -> None:
        self._fs = fs
        self._pool = pool if pool is not None else MemoryPool()
        self._rng = rng if rng is not None else random.Random()
        self._on_fault = on_fault

    def pick(self, path: str) -> Optional[str]:
        """Return the full path of a random subdirectory of ``path``.

        Returns None when ``path`` is missing, has no subdirectories or the
        candidate list cannot be allocated.
        """
        started = time.monotonic()
        try:
            subdirectories = iter_subdirectories(self._fs, path)
        except PlaylistError as exc:
            logger.error("%s", exc)
            return None
        logger.info("Try to pick a random subdirectory of %s", path)

        chunk_size = chunk_size_for("subdirectories", self._pool.extended)
        try:
            candidates = DelimitedList(chunk_size, self._pool)
        except OutOfMemoryError as exc:
            logger.error("Unable to allocate memory for subdirectory list: %s", exc)
            self._on_fault()
            return None

        with candidates:
            try:
                for entry in subdirectories:
                    if candidates.delimiter in entry.path:
                        logger.warning(
                            "Skipping %s: name contains reserved %r",
                            entry.path,
                            candidates.delimiter,
                        )
                        continue
                    candidates.append(entry.path)
            except OutOfMemoryError as exc:
                logger.error(
                    "Unable to allocate memory for subdirectory list: %s", exc
                )
                self._on_fault()
                return None
            except OSError:
                logger.exception("Failed to enumerate %s", path)
                return None

            directory_count = len(candidates)
            if not directory_count:
                logger.info("No subdirectories found in %s", path)
                return None
            chosen = self._rng.randint(1, directory_count)
            picked = candidates.entry_at(chosen, limit=MAX_PICKED_PATH_LENGTH)

        logger.info("Picked random subdirectory: %s", picked)
        logger.debug(
            "Pick random directory finished: %d ms",
            int((time.monotonic() - started) * 1000),
        )
        return picked
