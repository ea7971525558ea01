"""Evaluation runner.

Runs selected cases through the same path a chat turn takes: safety gate,
retrieval, system prompt, inference. A gate rejection is scored as the reply,
so injection cases pass without ever reaching the model.
"""

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from loguru import logger

from chatguard.core.errors import UpstreamFailure
from chatguard.evals.cases import ChatEvalCase, ChatEvalCaseResult, EvalCheckResult, EvalSummary
from chatguard.evals.scoring import DEFAULT_MAX_CASES, evaluate_case, get_eval_cases, summarize_eval
from chatguard.infra.llm.inference import InferenceClient
from chatguard.infra.llm.prompts import build_system_prompt
from chatguard.rag.retrieval import retrieve_context
from chatguard.security.sanitizer import sanitize_input

PRIVILEGED_MAX_CASES = 8
PUBLIC_MAX_CASES = 4

DEFAULT_EVAL_MAX_OUTPUT_TOKENS = 260
DEFAULT_EVAL_TEMPERATURE = 0.2


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(value, upper))


@dataclass(frozen=True)
class EvalRun:
    max_cases: int
    privileged: bool
    results: list[ChatEvalCaseResult]
    summary: EvalSummary


class EvalRunner:
    def __init__(self, inference: InferenceClient, clock: Callable[[], float] = time.monotonic) -> None:
        self.inference = inference
        self._clock = clock

    def _elapsed_ms(self, started: float) -> int:
        return round((self._clock() - started) * 1000)

    async def run_case(
        self,
        case: ChatEvalCase,
        *,
        max_output_tokens: int = DEFAULT_EVAL_MAX_OUTPUT_TOKENS,
        temperature: float = DEFAULT_EVAL_TEMPERATURE,
    ) -> ChatEvalCaseResult:
        started = self._clock()
        check = sanitize_input(case.prompt)

        if not check.safe:
            response = check.reason or "Blocked by input safety filters."
        else:
            prompt = check.sanitized or case.prompt
            try:
                system_prompt = build_system_prompt(retrieve_context(prompt))
                response = await self.inference.generate(
                    system_prompt,
                    [{"role": "user", "content": prompt}],
                    max_output_tokens=max_output_tokens,
                    temperature=temperature,
                )
            except UpstreamFailure as e:
                logger.warning("Eval case inference failed", case_id=case.id, detail=e.detail)
                return ChatEvalCaseResult(
                    id=case.id,
                    category=case.category,
                    prompt=case.prompt,
                    response=f"Inference error: {e.public_message}",
                    passed=False,
                    checks=[EvalCheckResult(name="inference_error", passed=False, reason=e.public_message)],
                    latency_ms=self._elapsed_ms(started),
                )

        passed, checks = evaluate_case(case, response)
        return ChatEvalCaseResult(
            id=case.id,
            category=case.category,
            prompt=case.prompt,
            response=response,
            passed=passed,
            checks=checks,
            latency_ms=self._elapsed_ms(started),
        )

    async def run(
        self,
        case_ids: Sequence[str] | None = None,
        max_cases: int | None = None,
        *,
        privileged: bool = False,
        max_output_tokens: int | None = None,
        temperature: float | None = None,
    ) -> EvalRun:
        """Run the selected cases sequentially.

        Args:
            case_ids: Case ids to run (all cases when empty)
            max_cases: Requested number of cases, capped by access level
            privileged: Caller presented a valid eval token
            max_output_tokens: Completion ceiling, clamped to 120..500
            temperature: Sampling temperature, clamped to 0..0.8

        Returns:
            EvalRun with per-case results and the summary
        """
        limit = PRIVILEGED_MAX_CASES if privileged else PUBLIC_MAX_CASES
        requested = max_cases if max_cases is not None else DEFAULT_MAX_CASES
        cases = get_eval_cases(case_ids, min(requested, limit))

        tokens = int(clamp(max_output_tokens if max_output_tokens is not None else DEFAULT_EVAL_MAX_OUTPUT_TOKENS, 120, 500))
        temp = clamp(temperature if temperature is not None else DEFAULT_EVAL_TEMPERATURE, 0.0, 0.8)

        results = [await self.run_case(case, max_output_tokens=tokens, temperature=temp) for case in cases]
        summary = summarize_eval(results)

        logger.info(
            "Chat eval completed",
            passed=summary.passed,
            failed=summary.failed,
            pass_rate=summary.pass_rate,
        )
        return EvalRun(max_cases=limit, privileged=privileged, results=results, summary=summary)
