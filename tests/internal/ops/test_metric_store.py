"""Tests for the in-memory metric store."""

from chatguard.internal.ops.metrics import MetricStore
from tests.helpers import FakeClock


def test_counter_starts_at_zero_and_accumulates() -> None:
    store = MetricStore()

    assert store.get_counter("requests") == 0
    store.increment("requests")
    store.increment("requests", 4)

    assert store.get_counter("requests") == 5


def test_negative_increment_is_ignored() -> None:
    store = MetricStore()
    store.increment("requests", 2)
    store.increment("requests", -1)

    assert store.get_counter("requests") == 2


def test_gauge_overwrites() -> None:
    store = MetricStore()
    store.set_gauge("queue_depth", 3)
    store.set_gauge("queue_depth", 1)

    assert store.get_gauge("queue_depth") == 1
    assert store.get_gauge("unknown") == 0


def test_percentile_of_empty_histogram_is_zero() -> None:
    store = MetricStore()

    assert store.percentile("latency", 50) == 0
    assert store.percentile("latency", 99, window_seconds=60) == 0


def test_percentile_uses_nearest_rank() -> None:
    store = MetricStore()
    for value in range(1, 101):
        store.observe("latency", value)

    assert store.percentile("latency", 50) == 50
    assert store.percentile("latency", 95) == 95
    assert store.percentile("latency", 99) == 99
    assert store.percentile("latency", 100) == 100
    assert store.percentile("latency", 0) == 1


def test_percentiles_are_monotonic() -> None:
    """p50 <= p95 <= p99 for any sample set.

    Assertions:
    - Holds for an unordered, skewed sample set
    """
    store = MetricStore()
    for value in [900, 3, 45, 45, 12, 7000, 1, 88, 300, 45, 2]:
        store.observe("latency", value)

    p50 = store.percentile("latency", 50)
    p95 = store.percentile("latency", 95)
    p99 = store.percentile("latency", 99)

    assert p50 <= p95 <= p99


def test_histogram_cap_evicts_oldest_first() -> None:
    store = MetricStore(max_observations=3)
    for value in [1, 2, 3, 4, 5]:
        store.observe("latency", value)

    samples = store.samples("latency")

    assert [sample.value for sample in samples] == [3.0, 4.0, 5.0]
    assert store.histogram_count("latency") == 3


def test_window_excludes_old_samples() -> None:
    clock = FakeClock()
    store = MetricStore(clock=clock)
    store.observe("latency", 1000)
    clock.advance(120)
    store.observe("latency", 10)

    assert store.percentile("latency", 99, window_seconds=60) == 10
    assert store.histogram_count("latency", window_seconds=60) == 1
    assert store.histogram_count("latency") == 2


def test_counters_snapshot_is_a_copy() -> None:
    store = MetricStore()
    store.increment("a")
    snapshot = store.counters_snapshot()
    snapshot["a"] = 100

    assert store.get_counter("a") == 1
