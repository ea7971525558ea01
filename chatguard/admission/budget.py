"""Daily request budget.

A single counter keyed by local calendar date. Independent of the per-source
bucket: it caps aggregate cost exposure, not per-source abuse. A new date key
starts at zero, so the reset happens exactly once per day boundary.
"""

import threading
import time
from collections.abc import Callable
from datetime import date, datetime


class DailyBudget:
    def __init__(self, ceiling: int, clock: Callable[[], float] = time.time) -> None:
        self.ceiling = ceiling
        self._clock = clock
        self._counts: dict[date, int] = {}
        self._lock = threading.Lock()

    def _today(self) -> date:
        return datetime.fromtimestamp(self._clock()).date()

    def increment(self) -> int:
        """Count one unit against today's budget.

        Returns:
            Today's count after the increment
        """
        today = self._today()
        with self._lock:
            if today not in self._counts:
                # Previous days are never read again
                self._counts.clear()
            self._counts[today] = self._counts.get(today, 0) + 1
            return self._counts[today]

    def count(self) -> int:
        today = self._today()
        with self._lock:
            return self._counts.get(today, 0)

    def remaining(self) -> int:
        return max(0, self.ceiling - self.count())

    def is_exhausted(self) -> bool:
        """True once today's count has gone past the ceiling."""
        return self.count() > self.ceiling

    def reserve(self) -> bool:
        """Increment and report whether the reservation fits the budget.

        Exactly ``ceiling`` reservations succeed per day; later ones fail and
        still count, so the counter never decreases within a day.
        """
        return self.increment() <= self.ceiling
