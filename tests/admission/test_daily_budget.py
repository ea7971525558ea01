"""Tests for the daily request budget."""

from chatguard.admission.budget import DailyBudget
from tests.helpers import FakeClock


def test_exhausted_only_after_going_past_ceiling() -> None:
    """is_exhausted() is false after N increments and true after N+1."""
    budget = DailyBudget(ceiling=5, clock=FakeClock())

    for _ in range(5):
        budget.increment()
    assert not budget.is_exhausted()
    assert budget.remaining() == 0

    budget.increment()
    assert budget.is_exhausted()
    assert budget.remaining() == 0


def test_reserve_admits_exactly_ceiling_per_day() -> None:
    budget = DailyBudget(ceiling=3, clock=FakeClock())

    reservations = [budget.reserve() for _ in range(5)]

    assert reservations == [True, True, True, False, False]
    assert budget.count() == 5


def test_new_day_starts_at_zero() -> None:
    clock = FakeClock()
    budget = DailyBudget(ceiling=2, clock=clock)
    budget.increment()
    budget.increment()
    budget.increment()

    clock.advance(86_400)

    assert budget.count() == 0
    assert not budget.is_exhausted()
    assert budget.reserve()
