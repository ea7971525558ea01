"""Tests for the per-source fixed-window token bucket."""

from chatguard.admission.rate_limit import TokenBucketLimiter
from tests.helpers import FakeClock


def test_three_per_minute_scenario() -> None:
    """N=3: three allowed, fourth rejected, allowed again after the window.

    Assertions:
    - remaining counts down 2, 1, 0
    - fourth call is rejected with remaining 0 and a wait message
    - after 61 seconds the window hard-resets to N-1
    """
    clock = FakeClock()
    limiter = TokenBucketLimiter(max_requests=3, clock=clock)

    results = [limiter.check("1.2.3.4") for _ in range(3)]
    assert [r.allowed for r in results] == [True, True, True]
    assert [r.remaining for r in results] == [2, 1, 0]

    rejected = limiter.check("1.2.3.4")
    assert not rejected.allowed
    assert rejected.remaining == 0
    assert rejected.reset_at == clock.now + 60
    assert "60 seconds" in rejected.message

    clock.advance(61)
    after_reset = limiter.check("1.2.3.4")
    assert after_reset.allowed
    assert after_reset.remaining == 2


def test_sources_are_independent() -> None:
    limiter = TokenBucketLimiter(max_requests=1, clock=FakeClock())

    assert limiter.check("a").allowed
    assert not limiter.check("a").allowed
    assert limiter.check("b").allowed


def test_remaining_never_negative() -> None:
    limiter = TokenBucketLimiter(max_requests=2, clock=FakeClock())

    results = [limiter.check("a") for _ in range(10)]

    assert all(r.remaining >= 0 for r in results)
    assert sum(r.allowed for r in results) == 2


def test_reset_at_exactly_now_rolls_over() -> None:
    clock = FakeClock()
    limiter = TokenBucketLimiter(max_requests=1, clock=clock)
    limiter.check("a")

    clock.advance(60)

    assert limiter.check("a").allowed


def test_adjacent_windows_allow_burst_of_two_n() -> None:
    clock = FakeClock()
    limiter = TokenBucketLimiter(max_requests=2, clock=clock)

    clock.advance(0)
    first = [limiter.check("a").allowed for _ in range(2)]
    clock.advance(60)
    second = [limiter.check("a").allowed for _ in range(2)]

    assert first + second == [True] * 4


def test_state_for_returns_copy() -> None:
    limiter = TokenBucketLimiter(max_requests=3, clock=FakeClock())
    assert limiter.state_for("a") is None

    limiter.check("a")
    state = limiter.state_for("a")
    state.tokens = 100

    assert limiter.state_for("a").tokens == 2
