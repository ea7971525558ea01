"""In-memory metric store: counters, gauges, bounded histograms.

Entries are created lazily on first write and live as long as the store.
Nothing here performs I/O and nothing raises for normal use.
"""

import math
import threading
import time
from collections import deque
from collections.abc import Callable

from chatguard.internal.ops.types import Observation

# Per-histogram cap; oldest samples are dropped first
MAX_OBSERVATIONS = 2000


class MetricStore:
    """Counters, gauges and capped histograms behind one lock."""

    def __init__(
        self,
        max_observations: int = MAX_OBSERVATIONS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max_observations = max_observations
        self._clock = clock
        self._counters: dict[str, float] = {}
        self._gauges: dict[str, float] = {}
        self._histograms: dict[str, deque[Observation]] = {}
        self._lock = threading.Lock()

    # Counters

    def increment(self, name: str, amount: float = 1) -> None:
        """Add ``amount`` to a counter. Unknown names start at 0.

        Args:
            name: Counter name (labels may be embedded, e.g. ``errors_total{type="server"}``)
            amount: Non-negative increment
        """
        if amount < 0:
            return
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + amount

    def get_counter(self, name: str) -> float:
        with self._lock:
            return self._counters.get(name, 0)

    # Gauges

    def set_gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = value

    def get_gauge(self, name: str) -> float:
        with self._lock:
            return self._gauges.get(name, 0)

    # Histograms

    def observe(self, name: str, value: float) -> None:
        """Append a timestamped sample to a histogram.

        Args:
            name: Histogram name
            value: Sample value (milliseconds for latency histograms)
        """
        now = self._clock()
        with self._lock:
            samples = self._histograms.get(name)
            if samples is None:
                samples = deque(maxlen=self._max_observations)
                self._histograms[name] = samples
            samples.append(Observation(t=now, value=float(value)))

    def _window_values(self, name: str, window_seconds: float | None) -> list[float]:
        with self._lock:
            samples = list(self._histograms.get(name, ()))
        if window_seconds:
            cutoff = self._clock() - window_seconds
            return [sample.value for sample in samples if sample.t >= cutoff]
        return [sample.value for sample in samples]

    def percentile(self, name: str, p: float, window_seconds: float | None = None) -> float:
        """Nearest-rank percentile over a histogram.

        Filters to the window (if given), sorts ascending and returns the
        element at ``ceil(p/100 * n) - 1``.

        Args:
            name: Histogram name
            p: Percentile in [0, 100]
            window_seconds: Only consider samples newer than this many seconds

        Returns:
            Percentile value, or 0 if there are no samples in the window
        """
        values = sorted(self._window_values(name, window_seconds))
        if not values:
            return 0
        index = math.ceil((p / 100.0) * len(values)) - 1
        index = min(max(index, 0), len(values) - 1)
        return values[index]

    def histogram_count(self, name: str, window_seconds: float | None = None) -> int:
        return len(self._window_values(name, window_seconds))

    def samples(self, name: str) -> list[Observation]:
        """Snapshot of retained samples, oldest first."""
        with self._lock:
            return list(self._histograms.get(name, ()))

    def counters_snapshot(self) -> dict[str, float]:
        with self._lock:
            return dict(self._counters)
