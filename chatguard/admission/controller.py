"""Admission controller.

Evaluated in strict order per request:
1. Kill-switch: bypasses every limit when set.
2. Per-source token bucket.
3. Daily budget.
4. Response cache short-circuit.
The session cap (5) is client-local; the controller only hands out counters.
"""

import time
from collections.abc import Callable
from datetime import datetime, timedelta

from loguru import logger

from chatguard.admission.budget import DailyBudget
from chatguard.admission.rate_limit import WINDOW_SECONDS, TokenBucketLimiter
from chatguard.admission.response_cache import ResponseCache
from chatguard.admission.session_cap import SessionCounter
from chatguard.admission.types import AdmissionDecision, RateLimitResult
from chatguard.config.settings import Settings

# Reported as "remaining" while the kill-switch is on
UNLIMITED_REMAINING = 999

BUDGET_EXHAUSTED_MESSAGE = (
    "The assistant has reached its daily conversation limit. Please come back tomorrow."
)


class AdmissionController:
    def __init__(
        self,
        *,
        max_requests_per_window: int,
        daily_budget: int,
        session_cap: int,
        disabled: bool = False,
        response_cache: ResponseCache | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.disabled = disabled
        self.session_cap = session_cap
        self._clock = clock
        self.limiter = TokenBucketLimiter(max_requests_per_window, WINDOW_SECONDS, clock=clock)
        self.budget = DailyBudget(daily_budget, clock=clock)
        self.cache = response_cache if response_cache is not None else ResponseCache()

    @classmethod
    def from_settings(cls, settings: Settings, clock: Callable[[], float] = time.time) -> "AdmissionController":
        return cls(
            max_requests_per_window=settings.chat_max_rpm_per_ip,
            daily_budget=settings.chat_daily_budget,
            session_cap=settings.chat_max_messages,
            disabled=settings.rate_limits_disabled,
            clock=clock,
        )

    def check_source(self, source_key: str) -> RateLimitResult:
        """Kill-switch and per-source bucket only; the daily budget is untouched.

        Used by endpoints that must not spend the chat budget (evals, error
        explanations).
        """
        if self.disabled:
            return RateLimitResult(
                allowed=True,
                remaining=UNLIMITED_REMAINING,
                reset_at=self._clock() + WINDOW_SECONDS,
            )
        return self.limiter.check(source_key)

    def check(self, source_key: str) -> RateLimitResult:
        """Run the limiting steps (kill-switch, bucket, budget) for a source.

        Args:
            source_key: Caller identity, usually the client IP

        Returns:
            RateLimitResult with remaining tokens and reset time
        """
        bucket_result = self.check_source(source_key)
        if self.disabled or not bucket_result.allowed:
            return bucket_result

        if not self.budget.reserve():
            logger.warning("Daily budget exhausted", ceiling=self.budget.ceiling, count=self.budget.count())
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_at=self._next_midnight(),
                message=BUDGET_EXHAUSTED_MESSAGE,
            )

        return bucket_result

    def lookup(self, query: str) -> str | None:
        return self.cache.lookup(query)

    def admit(self, source_key: str, query: str) -> AdmissionDecision:
        """Full admission pipeline: limits first, then the response cache."""
        result = self.check(source_key)
        if not result.allowed:
            return AdmissionDecision(result=result)
        return AdmissionDecision(result=result, cached_response=self.lookup(query))

    def budget_remaining(self) -> int:
        return self.budget.remaining()

    def budget_used(self) -> int:
        # Rejected reservations still count; report admitted requests only
        return min(self.budget.count(), self.budget.ceiling)

    def is_budget_exhausted(self) -> bool:
        if self.disabled:
            return False
        return self.budget.is_exhausted()

    def new_session_counter(self) -> SessionCounter:
        return SessionCounter(cap=self.session_cap, disabled=self.disabled)

    def _next_midnight(self) -> float:
        now = datetime.fromtimestamp(self._clock())
        tomorrow = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        return tomorrow.timestamp()
