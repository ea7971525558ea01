"""Health check composer.

Evaluates a fixed set of named checks and reduces them by precedence:
any ``down`` -> unhealthy, else any ``degraded`` -> degraded, else healthy.
"""

from datetime import datetime, timezone

from chatguard.admission.controller import AdmissionController
from chatguard.config.settings import Settings
from chatguard.infra.llm.provider import get_chat_provider_config, validate_provider_config
from chatguard.internal.ops.telemetry import CHAT_INFERENCE_DURATION_MS, CHAT_RAG_DURATION_MS, Telemetry
from chatguard.internal.ops.types import HealthCheck, HealthData, HealthStatus

# Latency window for health checks (5 minutes)
HEALTH_LATENCY_WINDOW_SECONDS = 300


def reduce_status(checks: dict[str, HealthCheck]) -> HealthStatus:
    statuses = {check.status for check in checks.values()}
    if "down" in statuses:
        return "unhealthy"
    if "degraded" in statuses:
        return "degraded"
    return "healthy"


def _latency_or_none(telemetry: Telemetry, name: str) -> int | None:
    value = round(telemetry.metrics.percentile(name, 50, HEALTH_LATENCY_WINDOW_SECONDS))
    return value or None


def build_health(telemetry: Telemetry, admission: AdmissionController, settings: Settings) -> HealthData:
    """Build the health view.

    Args:
        telemetry: Process telemetry
        admission: Admission controller (for the daily budget)
        settings: Application settings (inference provider, version, region)

    Returns:
        HealthData with overall status and per-check details
    """
    provider_ok = validate_provider_config(get_chat_provider_config(settings)).ok
    budget_remaining = admission.budget_remaining()
    budget_ok = admission.disabled or budget_remaining > 0

    checks = {
        "inference_api": HealthCheck(
            status="up" if provider_ok else "degraded",
            latency_ms=_latency_or_none(telemetry, CHAT_INFERENCE_DURATION_MS),
        ),
        "rag_system": HealthCheck(
            status="up",
            latency_ms=_latency_or_none(telemetry, CHAT_RAG_DURATION_MS),
        ),
        "rate_limiter": HealthCheck(
            status="up" if budget_ok else "degraded",
            budget_remaining=budget_remaining,
        ),
        "logging": HealthCheck(status="up"),
    }

    return HealthData(
        status=reduce_status(checks),
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=telemetry.uptime_seconds(),
        checks=checks,
        version=settings.app_version,
        region=settings.google_cloud_region,
    )
