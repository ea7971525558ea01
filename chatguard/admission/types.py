"""Admission control data contracts."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float
    message: str | None = None


@dataclass
class RateLimitState:
    """Per-source window state. Replaced wholesale on rollover."""

    tokens: int
    reset_at: float


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of the full admission pipeline for one request.

    ``cached_response`` is set when the response cache short-circuits the
    request; the caller must then skip the safety gate and inference.
    """

    result: RateLimitResult
    cached_response: str | None = None

    @property
    def allowed(self) -> bool:
        return self.result.allowed

    @property
    def cache_hit(self) -> bool:
        return self.cached_response is not None
