"""Rolling request time series (10-second buckets, 1 hour).

This is the only structure that keeps request/error pairing over time;
histograms lose that correlation.
"""

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import replace

from chatguard.internal.ops.types import TimeSeriesBucket

BUCKET_SECONDS = 10
MAX_TIMESERIES_POINTS = 360  # 1h at 10s intervals
DEFAULT_WINDOW_SECONDS = 3600


class TimeSeriesAggregator:
    def __init__(
        self,
        bucket_seconds: int = BUCKET_SECONDS,
        max_points: int = MAX_TIMESERIES_POINTS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._bucket_seconds = bucket_seconds
        self._clock = clock
        self._buckets: deque[TimeSeriesBucket] = deque(maxlen=max_points)
        self._lock = threading.Lock()

    def _bucket_start(self, now: float) -> int:
        return int(now // self._bucket_seconds) * self._bucket_seconds

    def _current_bucket(self) -> TimeSeriesBucket:
        # Caller holds the lock
        bucket_time = self._bucket_start(self._clock())
        if self._buckets and self._buckets[-1].t == bucket_time:
            return self._buckets[-1]
        bucket = TimeSeriesBucket(t=bucket_time)
        self._buckets.append(bucket)
        return bucket

    def record_request(self, latency_ms: float, is_error: bool) -> None:
        """Count a request (and its latency) into the current bucket.

        Args:
            latency_ms: Request latency in milliseconds
            is_error: Whether the request ended in an error status
        """
        with self._lock:
            bucket = self._current_bucket()
            bucket.requests += 1
            if is_error:
                bucket.errors += 1
            bucket.latency_sum += latency_ms
            bucket.latency_count += 1

    def snapshot(self, window_seconds: float = DEFAULT_WINDOW_SECONDS) -> list[TimeSeriesBucket]:
        """Copies of buckets newer than ``window_seconds``, oldest first."""
        cutoff = self._clock() - window_seconds
        with self._lock:
            return [replace(bucket) for bucket in self._buckets if bucket.t > cutoff]

    def requests_in_window(self, window_seconds: float) -> int:
        return sum(bucket.requests for bucket in self.snapshot(window_seconds))

    def errors_in_window(self, window_seconds: float) -> int:
        return sum(bucket.errors for bucket in self.snapshot(window_seconds))

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)
