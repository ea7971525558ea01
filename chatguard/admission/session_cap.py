"""Client-local session message cap.

Best effort only: the counter lives with the caller (an interactive CLI loop,
a browser tab) and exists to throttle the UI. It is not server-authoritative
and offers no protection against a client that resets it.
"""

import threading


class SessionCounter:
    def __init__(self, cap: int, disabled: bool = False) -> None:
        self.cap = cap
        self.disabled = disabled
        self._count = 0
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return self._count

    def increment(self) -> int:
        with self._lock:
            self._count += 1
            return self._count

    def remaining(self) -> int:
        return max(0, self.cap - self._count)

    def is_limit_reached(self) -> bool:
        if self.disabled:
            return False
        return self._count >= self.cap
