"""In-memory XP accumulator shared by the edit handler and the debouncer."""
from __future__ import annotations

import threading

from codestats_ls.models import Pulse


class XpAggregator:
    """Language -> accumulated XP, guarded by a single lock.

    Callers never see the map itself: record() adds to it and drain() turns
    it into a Pulse and empties it in the same critical section, so an
    increment racing a drain lands in exactly one of the two.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._xp_by_language: dict[str, int] = {}

    def record(self, language: str, amount: int) -> None:
        """Add amount to language's counter. Amounts below 1 are ignored."""
        if amount <= 0:
            return
        with self._lock:
            self._xp_by_language[language] = self._xp_by_language.get(language, 0) + amount

    def drain(self) -> Pulse | None:
        """Snapshot all XP into a new Pulse and reset. None if nothing accrued."""
        with self._lock:
            if not self._xp_by_language:
                return None
            counts = self._xp_by_language
            self._xp_by_language = {}
        # The old map is unreachable by other threads now; build outside the lock.
        return Pulse.from_counts(counts)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._xp_by_language)

    def __len__(self) -> int:
        with self._lock:
            return len(self._xp_by_language)
