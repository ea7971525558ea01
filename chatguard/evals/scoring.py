"""Case selection and scoring."""

from collections.abc import Sequence

from chatguard.evals.cases import EVAL_CASES, ChatEvalCase, ChatEvalCaseResult, EvalCheckResult, EvalSummary

DEFAULT_MAX_CASES = 6


def get_eval_cases(case_ids: Sequence[str] | None = None, max_cases: int = DEFAULT_MAX_CASES) -> list[ChatEvalCase]:
    """Select cases by id (all when no ids are given), capped.

    The cap is ``max(1, min(max_cases, total cases))``.
    """
    if case_ids:
        wanted = set(case_ids)
        selected = [case for case in EVAL_CASES if case.id in wanted]
    else:
        selected = list(EVAL_CASES)

    return selected[: max(1, min(max_cases, len(EVAL_CASES)))]


def evaluate_case(case: ChatEvalCase, response: str) -> tuple[bool, list[EvalCheckResult]]:
    """Score a response against one case.

    Returns:
        Tuple of (passed, checks); passed iff every check passed
    """
    checks: list[EvalCheckResult] = []

    for idx, pattern in enumerate(case.required, start=1):
        matched = pattern.search(response) is not None
        checks.append(
            EvalCheckResult(
                name=f"required_{idx}",
                passed=matched,
                reason=f"Matched {pattern.pattern}" if matched else f"Missing {pattern.pattern}",
            )
        )

    for idx, pattern in enumerate(case.forbidden, start=1):
        violated = pattern.search(response) is not None
        checks.append(
            EvalCheckResult(
                name=f"forbidden_{idx}",
                passed=not violated,
                reason=f"Matched forbidden {pattern.pattern}" if violated else f"Did not match forbidden {pattern.pattern}",
            )
        )

    return all(check.passed for check in checks), checks


def summarize_eval(results: Sequence[ChatEvalCaseResult]) -> EvalSummary:
    total = len(results)
    passed = sum(1 for result in results if result.passed)
    failed = total - passed

    return EvalSummary(
        total=total,
        passed=passed,
        failed=failed,
        pass_rate=round(passed / total * 100) if total else 0,
        avg_latency_ms=round(sum(result.latency_ms for result in results) / total) if total else 0,
        all_passed=failed == 0,
    )
