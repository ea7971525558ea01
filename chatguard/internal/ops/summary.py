"""War-room dashboard assembler.

Pure, on-demand read aggregation over telemetry and the admission controller.
No internal caching (see ``cache.py`` for the caller-side TTL cache).
Partial failures are handled gracefully: each section falls back to zeros.
"""

import platform

from loguru import logger

from chatguard.admission.controller import AdmissionController
from chatguard.config.settings import Settings
from chatguard.internal.ops.health import build_health
from chatguard.internal.ops.telemetry import (
    CHAT_CACHE_HITS_TOTAL,
    CHAT_CONVERSATIONS_TOTAL,
    CHAT_INFERENCE_DURATION_MS,
    CHAT_RATE_LIMIT_HITS_TOTAL,
    HTTP_REQUEST_DURATION_MS,
    HTTP_REQUESTS_TOTAL,
    Telemetry,
)
from chatguard.internal.ops.types import (
    ChatMetrics,
    InfrastructureInfo,
    LatencyPoint,
    RequestMetrics,
    RequestPoint,
    TimeSeriesData,
    WarRoomData,
)

ONE_MINUTE = 60
ONE_HOUR = 3600


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is zero."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def _request_metrics(telemetry: Telemetry) -> RequestMetrics:
    metrics = telemetry.metrics
    requests_last_hour = telemetry.timeseries.requests_in_window(ONE_HOUR)
    errors_last_hour = telemetry.timeseries.errors_in_window(ONE_HOUR)

    return RequestMetrics(
        total_24h=int(metrics.get_counter(HTTP_REQUESTS_TOTAL)),
        rpm_current=telemetry.timeseries.requests_in_window(ONE_MINUTE),
        error_rate_1h=round(safe_ratio(errors_last_hour, requests_last_hour) * 100, 2),
        latency_p50=round(metrics.percentile(HTTP_REQUEST_DURATION_MS, 50, ONE_HOUR)),
        latency_p95=round(metrics.percentile(HTTP_REQUEST_DURATION_MS, 95, ONE_HOUR)),
        latency_p99=round(metrics.percentile(HTTP_REQUEST_DURATION_MS, 99, ONE_HOUR)),
    )


def _chat_metrics(telemetry: Telemetry, admission: AdmissionController) -> ChatMetrics:
    metrics = telemetry.metrics
    conversations = int(metrics.get_counter(CHAT_CONVERSATIONS_TOTAL))
    cache_hits = metrics.get_counter(CHAT_CACHE_HITS_TOTAL)

    return ChatMetrics(
        conversations_24h=conversations,
        avg_inference_ms=round(metrics.percentile(CHAT_INFERENCE_DURATION_MS, 50)),
        cache_hit_rate=round(safe_ratio(cache_hits, conversations) * 100),
        rate_limit_hits_24h=int(metrics.get_counter(CHAT_RATE_LIMIT_HITS_TOTAL)),
        budget_used=admission.budget_used(),
        budget_remaining=admission.budget_remaining(),
    )


def _timeseries(telemetry: Telemetry) -> TimeSeriesData:
    buckets = telemetry.timeseries.snapshot(ONE_HOUR)
    p95_1h = round(telemetry.metrics.percentile(HTTP_REQUEST_DURATION_MS, 95, ONE_HOUR))

    return TimeSeriesData(
        latency_1h=[
            LatencyPoint(
                t=bucket.t,
                avg=round(safe_ratio(bucket.latency_sum, bucket.latency_count)),
                p95=p95_1h,
            )
            for bucket in buckets
        ],
        requests_1h=[RequestPoint(t=bucket.t, count=bucket.requests, errors=bucket.errors) for bucket in buckets],
    )


def build_dashboard(telemetry: Telemetry, admission: AdmissionController, settings: Settings) -> WarRoomData:
    """Build the full war-room snapshot.

    Returns:
        WarRoomData with health, request/chat metrics, logs and time series
    """
    request_metrics = RequestMetrics(
        total_24h=0, rpm_current=0, error_rate_1h=0.0, latency_p50=0, latency_p95=0, latency_p99=0
    )
    chat_metrics = ChatMetrics(
        conversations_24h=0,
        avg_inference_ms=0,
        cache_hit_rate=0,
        rate_limit_hits_24h=0,
        budget_used=0,
        budget_remaining=0,
    )
    timeseries = TimeSeriesData()

    health = build_health(telemetry, admission, settings)

    # Collect request metrics (gracefully handle failures)
    try:
        request_metrics = _request_metrics(telemetry)
    except Exception as e:
        logger.warning(f"Failed to get request metrics: {e}")

    # Collect chat metrics (gracefully handle failures)
    try:
        chat_metrics = _chat_metrics(telemetry, admission)
    except Exception as e:
        logger.warning(f"Failed to get chat metrics: {e}")

    # Collect time series (gracefully handle failures)
    try:
        timeseries = _timeseries(telemetry)
    except Exception as e:
        logger.warning(f"Failed to get time series: {e}")

    return WarRoomData(
        service_status=health,
        request_metrics=request_metrics,
        chat_metrics=chat_metrics,
        infrastructure=InfrastructureInfo(
            uptime_seconds=telemetry.uptime_seconds(),
            cold_starts=1,
            python_version=platform.python_version(),
            boot_time=telemetry.boot_time_iso(),
        ),
        recent_events=telemetry.events.recent(),
        recent_errors=telemetry.errors.recent(),
        timeseries=timeseries,
    )
