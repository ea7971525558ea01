"""Trace ID generation for request correlation.

Format: ``<ms timestamp base36>-<sequence base36, 4 wide>-<6 random base36 chars>``.
Sortable by creation time within one process, unique enough across restarts.
"""

import secrets
import threading
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

_trace_counter = 0
_trace_lock = threading.Lock()


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_trace_id() -> str:
    """Generate a new trace ID.

    Returns:
        Trace ID string, e.g. ``lx3k9a2b-0001-q8z0c1``
    """
    global _trace_counter
    with _trace_lock:
        _trace_counter += 1
        sequence = _trace_counter

    timestamp = _to_base36(int(time.time() * 1000))
    rand = "".join(secrets.choice(_ALPHABET) for _ in range(6))
    return f"{timestamp}-{_to_base36(sequence).rjust(4, '0')}-{rand}"
