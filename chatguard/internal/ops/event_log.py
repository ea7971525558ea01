"""Bounded FIFO logs of discrete happenings (events and recent errors).

Reads return newest first. No deduplication and no severity filtering;
consumers decide what to show.
"""

import threading
from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone

from chatguard.internal.ops.types import EventType, RecentError, TelemetryEvent

MAX_EVENTS = 50
MAX_RECENT_ERRORS = 20


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventLog:
    def __init__(self, maxlen: int = MAX_EVENTS, now_iso: Callable[[], str] = _utc_now_iso) -> None:
        self._events: deque[TelemetryEvent] = deque(maxlen=maxlen)
        self._now_iso = now_iso
        self._lock = threading.Lock()

    def add_event(self, type: EventType, message: str) -> None:
        event = TelemetryEvent(timestamp=self._now_iso(), type=type, message=message)
        with self._lock:
            self._events.append(event)

    def recent(self) -> list[TelemetryEvent]:
        with self._lock:
            return list(reversed(self._events))

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class ErrorLog:
    def __init__(self, maxlen: int = MAX_RECENT_ERRORS, now_iso: Callable[[], str] = _utc_now_iso) -> None:
        self._errors: deque[RecentError] = deque(maxlen=maxlen)
        self._now_iso = now_iso
        self._lock = threading.Lock()

    def record_error(
        self,
        endpoint: str,
        status_code: int,
        message: str,
        trace_id: str | None = None,
    ) -> None:
        """Append a recent error.

        Args:
            endpoint: Request path that failed
            status_code: HTTP status returned to the caller
            message: Operator-facing description (never shown to end users)
            trace_id: Optional trace ID for log correlation
        """
        error = RecentError(
            timestamp=self._now_iso(),
            endpoint=endpoint,
            status_code=status_code,
            message=message,
            trace_id=trace_id,
        )
        with self._lock:
            self._errors.append(error)

    def recent(self) -> list[RecentError]:
        with self._lock:
            return list(reversed(self._errors))

    def __len__(self) -> int:
        with self._lock:
            return len(self._errors)
