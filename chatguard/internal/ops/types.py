"""Ops metrics data contracts (single source of truth)."""

from dataclasses import dataclass, field
from typing import Literal

HealthStatus = Literal["healthy", "degraded", "unhealthy"]
CheckStatus = Literal["up", "degraded", "down"]
EventType = Literal["deploy", "error", "scale", "rate_limit", "cold_start", "health", "cache_hit"]


@dataclass(frozen=True)
class Observation:
    """Single histogram sample."""

    t: float
    value: float


@dataclass
class TimeSeriesBucket:
    """Fixed 10-second slot. Mutated in place while current."""

    t: int
    requests: int = 0
    errors: int = 0
    latency_sum: float = 0.0
    latency_count: int = 0


@dataclass(frozen=True)
class TelemetryEvent:
    timestamp: str
    type: EventType
    message: str


@dataclass(frozen=True)
class RecentError:
    timestamp: str
    endpoint: str
    status_code: int
    message: str
    trace_id: str | None = None


@dataclass(frozen=True)
class HealthCheck:
    """Result of one named health check."""

    status: CheckStatus
    latency_ms: int | None = None
    budget_remaining: int | None = None


@dataclass(frozen=True)
class HealthData:
    status: HealthStatus
    timestamp: str
    uptime_seconds: int
    checks: dict[str, HealthCheck]
    version: str
    region: str


@dataclass(frozen=True)
class RequestMetrics:
    total_24h: int
    rpm_current: int
    error_rate_1h: float
    latency_p50: int
    latency_p95: int
    latency_p99: int


@dataclass(frozen=True)
class ChatMetrics:
    conversations_24h: int
    avg_inference_ms: int
    cache_hit_rate: int
    rate_limit_hits_24h: int
    budget_used: int
    budget_remaining: int


@dataclass(frozen=True)
class InfrastructureInfo:
    uptime_seconds: int
    cold_starts: int
    python_version: str
    boot_time: str


@dataclass(frozen=True)
class LatencyPoint:
    """Latency data point for time series (mean of the bucket, 1h p95)."""

    t: int
    avg: int
    p95: int


@dataclass(frozen=True)
class RequestPoint:
    t: int
    count: int
    errors: int


@dataclass(frozen=True)
class TimeSeriesData:
    latency_1h: list[LatencyPoint] = field(default_factory=list)
    requests_1h: list[RequestPoint] = field(default_factory=list)


@dataclass(frozen=True)
class WarRoomData:
    """Full dashboard snapshot."""

    service_status: HealthData
    request_metrics: RequestMetrics
    chat_metrics: ChatMetrics
    infrastructure: InfrastructureInfo
    recent_events: list[TelemetryEvent]
    recent_errors: list[RecentError]
    timeseries: TimeSeriesData
