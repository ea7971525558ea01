"""Dashboard snapshot cache (10s TTL, in-memory only)."""

import threading
import time
from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar("T")

# Cache TTL (10 seconds)
CACHE_TTL_SECONDS = 10


class TTLCache(Generic[T]):
    """Single-value cache that rebuilds once the TTL has elapsed."""

    def __init__(
        self,
        build: Callable[[], T],
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._build = build
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: T | None = None
        self._timestamp: float | None = None
        self._lock = threading.Lock()

    def get(self) -> tuple[T, bool]:
        """Get the cached value (refreshes if expired).

        Returns:
            Tuple of (value, hit) where ``hit`` is True when served from cache

        Raises:
            Exception: Build failure with no previous value to fall back to
        """
        now = self._clock()

        with self._lock:
            # Check if cache is valid
            if self._value is not None and self._timestamp is not None:
                age = now - self._timestamp
                if age < self._ttl_seconds:
                    return self._value, True

            # Cache miss or expired - rebuild
            try:
                value = self._build()
            except Exception as e:
                logger.exception(f"Failed to build cached snapshot: {e}")
                # Return stale cache if available, otherwise raise
                if self._value is not None:
                    logger.warning("Returning stale cache due to build failure")
                    return self._value, True
                raise

            self._value = value
            self._timestamp = now
            return value, False
