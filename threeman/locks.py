"""Per-key exclusivity tokens.

Lock transitions and backfills for the same (league, week) must not
interleave; both acquire the token for that key from a shared registry.
"""

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from typing import Optional


class KeyedLocks:
    """Lazily created ``threading.Lock`` per hashable key."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: Hashable, timeout: Optional[float] = None) -> Iterator[None]:
        """
        Hold the token for key for the duration of the block.

        Raises:
            TimeoutError: If the token could not be acquired within timeout
        """
        lock = self._lock_for(key)
        acquired = lock.acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            raise TimeoutError(f'Could not acquire lock for {key!r}')
        try:
            yield
        finally:
            lock.release()

    def is_held(self, key: Hashable) -> bool:
        return self._lock_for(key).locked()


def week_key(league: str, season: int, week: int) -> tuple[str, int, int]:
    """Token key shared by lock transitions and backfill."""
    return league, season, week
