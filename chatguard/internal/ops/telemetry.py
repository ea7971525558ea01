"""Telemetry facade: the metric store, time series and logs for one process.

Metrics are in-memory and reset on restart (cold start). The dashboard shows
this honestly via the ``cold_start`` event and ``boot_time``.
"""

import platform
import time
from collections.abc import Callable
from datetime import datetime, timezone

from loguru import logger

from chatguard.internal.ops.event_log import ErrorLog, EventLog
from chatguard.internal.ops.metrics import MetricStore
from chatguard.internal.ops.timeseries import TimeSeriesAggregator

# Metric names
HTTP_REQUESTS_TOTAL = "http_requests_total"
HTTP_REQUEST_DURATION_MS = "http_request_duration_ms"
ERRORS_TOTAL = "errors_total"
CHAT_INFERENCE_DURATION_MS = "chat_inference_duration_ms"
CHAT_RAG_DURATION_MS = "chat_rag_retrieval_duration_ms"
CHAT_CACHE_HITS_TOTAL = "chat_cache_hits_total"
CHAT_RATE_LIMIT_HITS_TOTAL = "chat_rate_limit_hits_total"
CHAT_SAFETY_BLOCKS_TOTAL = "chat_safety_blocks_total"
CHAT_TOKENS_USED_TOTAL = "chat_tokens_used_total"
CHAT_CONVERSATIONS_TOTAL = "chat_conversations_total"


class Telemetry:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self.boot_time = clock()
        self.metrics = MetricStore(clock=clock)
        self.timeseries = TimeSeriesAggregator(clock=clock)
        self.events = EventLog()
        self.errors = ErrorLog()
        self.events.add_event("cold_start", f"Instance started (Python {platform.python_version()})")

    def uptime_seconds(self) -> int:
        return int(self.clock() - self.boot_time)

    def boot_time_iso(self) -> str:
        return datetime.fromtimestamp(self.boot_time, tz=timezone.utc).isoformat()

    def record_request(self, endpoint: str, method: str, status_code: int, duration_ms: float) -> None:
        """Record one HTTP request outcome.

        Args:
            endpoint: Request path
            method: HTTP method
            status_code: Response status
            duration_ms: Wall time in milliseconds
        """
        self.metrics.increment(HTTP_REQUESTS_TOTAL)
        self.metrics.increment(
            f'{HTTP_REQUESTS_TOTAL}{{endpoint="{endpoint}",method="{method}",status="{status_code}"}}'
        )
        self.metrics.observe(HTTP_REQUEST_DURATION_MS, duration_ms)
        self.metrics.observe(f'{HTTP_REQUEST_DURATION_MS}{{endpoint="{endpoint}"}}', duration_ms)
        self.timeseries.record_request(duration_ms, status_code >= 400)

        if status_code >= 400:
            self.metrics.increment(ERRORS_TOTAL)
        if status_code >= 500:
            self.metrics.increment(f'{ERRORS_TOTAL}{{type="server"}}')
        elif status_code >= 400:
            self.metrics.increment(f'{ERRORS_TOTAL}{{type="client"}}')

    def record_chat_metrics(
        self,
        *,
        duration_ms: float,
        rag_duration_ms: float = 0.0,
        cache_hit: bool = False,
        rate_limited: bool = False,
        tokens_used: int | None = None,
    ) -> None:
        """Record the outcome of one chat turn."""
        # Only turns that reached inference have an inference duration
        if not rate_limited and not cache_hit:
            self.metrics.observe(CHAT_INFERENCE_DURATION_MS, duration_ms)
            self.metrics.observe(CHAT_RAG_DURATION_MS, rag_duration_ms)
        if cache_hit:
            self.metrics.increment(CHAT_CACHE_HITS_TOTAL)
            self.events.add_event("cache_hit", "Served authored answer from response cache")
        if rate_limited:
            self.metrics.increment(CHAT_RATE_LIMIT_HITS_TOTAL)
            self.events.add_event("rate_limit", "Rate limit triggered")
        if tokens_used:
            self.metrics.increment(CHAT_TOKENS_USED_TOTAL, tokens_used)
        self.metrics.increment(CHAT_CONVERSATIONS_TOTAL)

    def record_safety_block(self, category: str) -> None:
        self.metrics.increment(CHAT_SAFETY_BLOCKS_TOTAL)
        self.metrics.increment(f'{CHAT_SAFETY_BLOCKS_TOTAL}{{category="{category}"}}')

    def record_upstream_error(self, endpoint: str, status_code: int, detail: str, trace_id: str | None) -> None:
        self.errors.record_error(endpoint=endpoint, status_code=status_code, message=detail, trace_id=trace_id)
        self.events.add_event("error", f"{endpoint} returned {status_code}")
        logger.error("Upstream failure", endpoint=endpoint, status_code=status_code, trace_id=trace_id, detail=detail)
