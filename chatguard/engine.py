"""Chat gate engine.

One ``ChatGuardEngine`` is built at startup and shared by every request
handler. It owns the process state (telemetry, admission tables, the
dashboard cache) so tests can build a fresh engine per case.

Per chat turn, in order:
validate batch -> admission (kill-switch, bucket, budget) -> response cache
-> safety gate -> provider check -> retrieval -> inference -> metrics -> persist.

Standalone retrieval and war-room error explanations raise ``ChatGuardError``
subclasses instead; the app turns those into JSON responses.
"""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from chatguard.admission.controller import AdmissionController
from chatguard.config.settings import Settings
from chatguard.core.errors import (
    GENERIC_RETRY_MESSAGE,
    AdmissionRejection,
    ConfigurationError,
    ErrorKind,
    InputValidationError,
    SafetyRejection,
    UpstreamFailure,
)
from chatguard.core.trace_id import generate_trace_id
from chatguard.evals.runner import EvalRunner
from chatguard.infra.llm.inference import InferenceClient, PydanticAIInference
from chatguard.infra.llm.prompts import (
    EXPLAIN_ERROR_SYSTEM_PROMPT,
    PORTFOLIO_ONLY_REFUSAL,
    build_explain_error_message,
    build_system_prompt,
)
from chatguard.infra.llm.provider import get_chat_provider_config, validate_provider_config
from chatguard.internal.ops.cache import TTLCache
from chatguard.internal.ops.health import build_health
from chatguard.internal.ops.summary import build_dashboard
from chatguard.internal.ops.telemetry import Telemetry
from chatguard.internal.ops.types import HealthData, WarRoomData
from chatguard.persistence.session_store import SessionStatus, SessionStore, SessionSummary, build_session_store
from chatguard.rag.retrieval import MAX_TOP_K, retrieve_context
from chatguard.security.sanitizer import blocked_category, sanitize_input
from chatguard.security.validator import ChatMessage, validate_messages

CHAT_ENDPOINT = "/api/chat"
NOT_CONFIGURED_MESSAGE = "The assistant is not configured right now. Please try again later."
LAST_MESSAGE_NOT_USER = "The last message must be from the user."

EXPLAIN_ERROR_ENDPOINT = "/api/war-room/explain-error"
EXPLAIN_MAX_OUTPUT_TOKENS = 300
EXPLAIN_TEMPERATURE = 0.3

RAG_SOURCE = "local_knowledge_base"
DEFAULT_TOP_K = 5


@dataclass(frozen=True)
class RagResult:
    context: str
    top_k: int
    source: str = RAG_SOURCE


@dataclass(frozen=True)
class ChatOutcome:
    """Result of one chat turn. ``kind`` is None on success."""

    status_code: int
    trace_id: str
    response: str | None = None
    error: str | None = None
    kind: ErrorKind | None = None
    cached: bool = False
    remaining: int | None = None
    reset_at: float | None = None

    @property
    def ok(self) -> bool:
        return self.kind is None


class ChatGuardEngine:
    def __init__(
        self,
        *,
        settings: Settings,
        telemetry: Telemetry,
        admission: AdmissionController,
        session_store: SessionStore,
        inference: InferenceClient,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.settings = settings
        self.telemetry = telemetry
        self.admission = admission
        self.session_store = session_store
        self.inference = inference
        self._timer = timer
        self.dashboard_cache = TTLCache(
            lambda: build_dashboard(self.telemetry, self.admission, self.settings),
            clock=telemetry.clock,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        clock: Callable[[], float] = time.time,
        inference: InferenceClient | None = None,
        session_store: SessionStore | None = None,
    ) -> "ChatGuardEngine":
        return cls(
            settings=settings,
            telemetry=Telemetry(clock=clock),
            admission=AdmissionController.from_settings(settings, clock=clock),
            session_store=session_store if session_store is not None else build_session_store(settings.database_url),
            inference=inference if inference is not None else PydanticAIInference(get_chat_provider_config(settings)),
        )

    def _elapsed_ms(self, started: float) -> float:
        return (self._timer() - started) * 1000

    def health(self) -> HealthData:
        return build_health(self.telemetry, self.admission, self.settings)

    def dashboard(self) -> tuple[WarRoomData, bool]:
        """Dashboard snapshot and whether it was served from the 10s cache."""
        return self.dashboard_cache.get()

    def eval_runner(self) -> EvalRunner:
        return EvalRunner(self.inference)

    def provider_ready(self) -> tuple[bool, str | None]:
        validation = validate_provider_config(get_chat_provider_config(self.settings))
        return validation.ok, validation.reason

    def retrieve(self, query: object, top_k: object = DEFAULT_TOP_K) -> RagResult:
        """Run a standalone retrieval query through the safety gate.

        Args:
            query: Raw ``query`` value from the request body; non-strings count as empty
            top_k: Requested chunk count; non-numbers fall back to 5, clamped to 1..8

        Returns:
            RagResult with the retrieved context

        Raises:
            InputValidationError: Empty query or a rejected-but-not-injection input
            SafetyRejection: A detector fired on the query
        """
        text = query if isinstance(query, str) else ""
        numeric = isinstance(top_k, (int, float)) and not isinstance(top_k, bool) and math.isfinite(top_k)
        requested = top_k if numeric else DEFAULT_TOP_K
        clamped = max(1, min(MAX_TOP_K, int(requested)))

        if not text.strip():
            raise InputValidationError("Query is required")

        check = sanitize_input(text)
        if not check.safe or not check.sanitized:
            category = blocked_category(text) if check.reason == PORTFOLIO_ONLY_REFUSAL else None
            if category is not None:
                self.telemetry.record_safety_block(category)
                raise SafetyRejection(check.reason or PORTFOLIO_ONLY_REFUSAL, detail=category)
            raise InputValidationError(check.reason or "Unsafe query.")

        return RagResult(context=retrieve_context(check.sanitized, clamped), top_k=clamped)

    async def explain_error(self, error_text: object, *, source_key: str) -> str:
        """Ask the model to explain an error line pasted from the war room.

        Spends a per-source bucket token but not the daily chat budget.

        Raises:
            ConfigurationError: Provider credentials are missing
            InputValidationError: No error text was given
            AdmissionRejection: The source is out of tokens for this window
            UpstreamFailure: The model call failed
        """
        ready, reason = self.provider_ready()
        if not ready:
            raise ConfigurationError("Inference API not configured", detail=reason)

        text = error_text.strip() if isinstance(error_text, str) else ""
        if not text:
            raise InputValidationError("Missing error_text")

        rate_limit = self.admission.check_source(source_key)
        if not rate_limit.allowed:
            raise AdmissionRejection(
                rate_limit.message or "Rate limit hit.",
                remaining=rate_limit.remaining,
                reset_at=rate_limit.reset_at,
            )

        started = self._timer()
        try:
            explanation = await self.inference.generate(
                EXPLAIN_ERROR_SYSTEM_PROMPT,
                [{"role": "user", "content": build_explain_error_message(text)}],
                max_output_tokens=EXPLAIN_MAX_OUTPUT_TOKENS,
                temperature=EXPLAIN_TEMPERATURE,
            )
        except UpstreamFailure as e:
            self.telemetry.record_upstream_error(EXPLAIN_ERROR_ENDPOINT, 502, e.detail or e.public_message, None)
            raise

        logger.info(
            "Error explanation generated",
            duration_ms=round(self._elapsed_ms(started)),
            input_length=len(text),
        )
        return explanation

    async def chat(
        self,
        messages: object,
        *,
        source_key: str,
        session_id: str | None = None,
        trace_id: str | None = None,
    ) -> ChatOutcome:
        """Run one chat turn through the full gate.

        Args:
            messages: Decoded ``messages`` value from the request body
            source_key: Caller identity for rate limiting (client IP)
            session_id: Optional analytics session id
            trace_id: Correlation id; generated when omitted

        Returns:
            ChatOutcome; expected rejections are results, never exceptions
        """
        trace_id = trace_id or generate_trace_id()
        started = self._timer()

        validation = validate_messages(messages)
        if not validation.safe or not validation.parsed:
            return ChatOutcome(status_code=400, trace_id=trace_id, error=validation.reason, kind="validation")

        conversation = validation.parsed
        if conversation[-1]["role"] != "user":
            return ChatOutcome(status_code=400, trace_id=trace_id, error=LAST_MESSAGE_NOT_USER, kind="validation")

        decision = self.admission.admit(source_key, conversation[-1]["content"])
        if not decision.allowed:
            self.telemetry.record_chat_metrics(duration_ms=self._elapsed_ms(started), rate_limited=True)
            logger.info("Chat request rate limited", trace_id=trace_id, remaining=decision.result.remaining)
            self.persist_turn(session_id, status="rate_limited", trace_id=trace_id, rate_limited=True)
            return ChatOutcome(
                status_code=429,
                trace_id=trace_id,
                error=decision.result.message,
                kind="admission",
                remaining=decision.result.remaining,
                reset_at=decision.result.reset_at,
            )

        if decision.cached_response is not None:
            duration_ms = self._elapsed_ms(started)
            self.telemetry.record_chat_metrics(duration_ms=duration_ms, cache_hit=True)
            self.persist_turn(
                session_id,
                status="ok",
                trace_id=trace_id,
                cache_hit=True,
                duration_ms=duration_ms,
                turn=[conversation[-1], {"role": "assistant", "content": decision.cached_response}],
            )
            return ChatOutcome(
                status_code=200,
                trace_id=trace_id,
                response=decision.cached_response,
                cached=True,
                remaining=decision.result.remaining,
                reset_at=decision.result.reset_at,
            )

        sanitized: list[ChatMessage] = []
        for message in conversation:
            if message["role"] != "user":
                sanitized.append(message)
                continue
            check = sanitize_input(message["content"])
            if not check.safe:
                category = blocked_category(message["content"]) if check.reason == PORTFOLIO_ONLY_REFUSAL else None
                if category is not None:
                    self.telemetry.record_safety_block(category)
                return ChatOutcome(
                    status_code=400,
                    trace_id=trace_id,
                    error=check.reason,
                    kind="safety" if category is not None else "validation",
                )
            sanitized.append({"role": "user", "content": check.sanitized or ""})

        ready, reason = self.provider_ready()
        if not ready:
            logger.warning("Inference provider not configured", trace_id=trace_id, reason=reason)
            return ChatOutcome(status_code=503, trace_id=trace_id, error=NOT_CONFIGURED_MESSAGE, kind="configuration")

        rag_started = self._timer()
        context = retrieve_context(sanitized[-1]["content"])
        rag_duration_ms = self._elapsed_ms(rag_started)

        inference_started = self._timer()
        try:
            reply = await self.inference.generate(build_system_prompt(context), sanitized)
        except UpstreamFailure as e:
            self.telemetry.record_upstream_error(CHAT_ENDPOINT, 502, e.detail or e.public_message, trace_id)
            self.persist_turn(session_id, status="error", trace_id=trace_id, duration_ms=self._elapsed_ms(started))
            return ChatOutcome(status_code=502, trace_id=trace_id, error=GENERIC_RETRY_MESSAGE, kind="upstream")
        except ConfigurationError as e:
            logger.warning("Inference provider rejected configuration", trace_id=trace_id, reason=e.detail)
            return ChatOutcome(status_code=503, trace_id=trace_id, error=NOT_CONFIGURED_MESSAGE, kind="configuration")
        inference_duration_ms = self._elapsed_ms(inference_started)

        self.telemetry.record_chat_metrics(duration_ms=inference_duration_ms, rag_duration_ms=rag_duration_ms)
        logger.info(
            "Chat turn completed",
            trace_id=trace_id,
            inference_ms=round(inference_duration_ms),
            rag_ms=round(rag_duration_ms),
            reply_length=len(reply),
        )

        self.persist_turn(
            session_id,
            status="ok",
            trace_id=trace_id,
            duration_ms=self._elapsed_ms(started),
            turn=[sanitized[-1], {"role": "assistant", "content": reply}],
        )
        return ChatOutcome(
            status_code=200,
            trace_id=trace_id,
            response=reply,
            remaining=decision.result.remaining,
            reset_at=decision.result.reset_at,
        )

    def persist_turn(
        self,
        session_id: str | None,
        *,
        status: SessionStatus,
        trace_id: str,
        cache_hit: bool = False,
        rate_limited: bool = False,
        duration_ms: float | None = None,
        turn: list[ChatMessage] | None = None,
    ) -> None:
        """Write session analytics and memory. Failures are logged, never raised."""
        if not session_id or not self.session_store.configured:
            return

        try:
            stats = self.session_store.get_session_stats(session_id)
            self.session_store.write_session_summary(
                SessionSummary(
                    session_id=session_id,
                    message_count=stats.message_count + (0 if rate_limited else 1),
                    cache_hits=stats.cache_hits + (1 if cache_hit else 0),
                    rate_limited=rate_limited,
                    status=status,
                    total_duration_ms=duration_ms,
                    trace_id=trace_id,
                )
            )
            if turn:
                self.session_store.append_session_memory(session_id, turn)
        except Exception as e:
            logger.bind(trace_id=trace_id).warning(f"Session persistence failed: {e}")
