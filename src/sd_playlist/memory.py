"""Memory accounting for playlist buffers.

The playback controller has a small heap and, on some boards, an external
memory pool. Buffers built here charge their capacity to a ``MemoryPool`` so
that allocation limits can be enforced and leaks detected.
"""

from __future__ import annotations

import logging

from sd_playlist.errors import OutOfMemoryError

logger = logging.getLogger(__name__)


class MemoryPool:
    """Tracks bytes in use against an optional limit."""

    def __init__(self, limit: int | None = None, *, extended: bool = False) -> None:
        self.limit = limit
        self.extended = extended
        self._in_use = 0
        self._peak = 0

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def peak(self) -> int:
        return self._peak

    def available(self) -> int | None:
        if self.limit is None:
            return None
        return max(0, self.limit - self._in_use)

    def allocate(self, size: int) -> int:
        """Reserve ``size`` bytes and return the reserved amount."""
        if size < 0:
            raise ValueError("size must be >= 0")
        if self.limit is not None and self._in_use + size > self.limit:
            raise OutOfMemoryError(size, self.available())
        self._in_use += size
        self._peak = max(self._peak, self._in_use)
        return size

    def reallocate(self, old_size: int, new_size: int) -> int:
        """Grow or shrink a reservation, leaving it untouched on failure."""
        if new_size < 0:
            raise ValueError("size must be >= 0")
        delta = new_size - old_size
        if (
            delta > 0
            and self.limit is not None
            and self._in_use + delta > self.limit
        ):
            raise OutOfMemoryError(new_size, self.available())
        self._in_use += delta
        self._peak = max(self._peak, self._in_use)
        return new_size

    def free(self, size: int) -> None:
        if size > self._in_use:
            logger.warning(
                "Freeing %s bytes but only %s are in use", size, self._in_use
            )
            self._in_use = 0
            return
        self._in_use -= size
