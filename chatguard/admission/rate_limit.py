"""Per-source fixed-window token bucket.

Each source key gets N tokens per 60-second window. When the window rolls
over the state is replaced (hard reset), not leaked back gradually: the goal
is "never more than N per rough minute" for cost control, not fairness.
Two adjacent windows can therefore admit a burst of up to 2N.
"""

import math
import threading
import time
from collections.abc import Callable

from loguru import logger

from chatguard.admission.types import RateLimitResult, RateLimitState

WINDOW_SECONDS = 60


class TokenBucketLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._states: dict[str, RateLimitState] = {}
        self._lock = threading.Lock()

    def check(self, source_key: str) -> RateLimitResult:
        """Consume one token for ``source_key`` if available.

        Args:
            source_key: Caller identity (client IP, eval token, ...)

        Returns:
            RateLimitResult; ``remaining`` is never negative
        """
        now = self._clock()
        with self._lock:
            existing = self._states.get(source_key)

            if existing is None or existing.reset_at <= now:
                state = RateLimitState(tokens=self.max_requests - 1, reset_at=now + self.window_seconds)
                self._states[source_key] = state
                return RateLimitResult(allowed=True, remaining=state.tokens, reset_at=state.reset_at)

            if existing.tokens <= 0:
                retry_in = max(1, math.ceil(existing.reset_at - now))
                logger.info("Rate limit hit", retry_in_seconds=retry_in)
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_at=existing.reset_at,
                    message=f"Rate limit reached. Please wait {retry_in} seconds before sending another message.",
                )

            existing.tokens -= 1
            return RateLimitResult(allowed=True, remaining=existing.tokens, reset_at=existing.reset_at)

    def state_for(self, source_key: str) -> RateLimitState | None:
        with self._lock:
            state = self._states.get(source_key)
            return RateLimitState(tokens=state.tokens, reset_at=state.reset_at) if state else None
