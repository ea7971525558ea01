"""Evaluation API router."""

import hmac
from dataclasses import asdict, replace
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from loguru import logger

from chatguard.api.dependencies import client_key, get_engine
from chatguard.api.schemas import EvalRequest
from chatguard.core.trace_id import generate_trace_id
from chatguard.engine import ChatGuardEngine
from chatguard.evals.cases import EVAL_CASES_VERSION

router = APIRouter(prefix="/api/chat", tags=["eval"])

HIDDEN_RESPONSE = "[hidden: set includeResponses=true]"


def eval_access(request: Request, token: str) -> tuple[bool, bool]:
    """Resolve (authorized, privileged) for an eval request.

    With no token configured the endpoint is open but unprivileged.
    """
    if not token:
        return True, False
    provided = request.headers.get("x-chat-eval-token", "")
    if provided and hmac.compare_digest(provided.encode(), token.encode()):
        return True, True
    return False, False


@router.post("/eval")
async def run_eval(req: EvalRequest, request: Request, engine: ChatGuardEngine = Depends(get_engine)) -> JSONResponse:
    """Run the evaluation harness against the configured provider.

    Returns:
        200 when every case passed, 422 otherwise
    """
    trace_id = generate_trace_id()
    headers = {"X-Trace-Id": trace_id, "Cache-Control": "no-store"}

    authorized, privileged = eval_access(request, engine.settings.chat_eval_token)
    if not authorized:
        return JSONResponse(
            status_code=403,
            content={
                "error": "Forbidden",
                "message": "CHAT_EVAL_TOKEN is configured; provide a valid x-chat-eval-token header.",
            },
            headers=headers,
        )

    rate_limit = engine.admission.check_source(client_key(request))
    if not rate_limit.allowed:
        return JSONResponse(
            status_code=429,
            content={"error": "Rate limited", "message": rate_limit.message or "Rate limit hit."},
            headers=headers,
        )

    ready, reason = engine.provider_ready()
    if not ready:
        return JSONResponse(status_code=503, content={"error": "Service unavailable", "message": reason}, headers=headers)

    run = await engine.eval_runner().run(
        req.case_ids,
        req.max_cases,
        privileged=privileged,
        max_output_tokens=req.max_output_tokens,
        temperature=req.temperature,
    )
    if not run.results:
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "message": "No evaluation cases selected."},
            headers=headers,
        )

    results = run.results if req.include_responses else [replace(r, response=HIDDEN_RESPONSE) for r in run.results]
    status_code = 200 if run.summary.all_passed else 422
    logger.bind(trace_id=trace_id).log(
        "INFO" if run.summary.all_passed else "WARNING",
        "Chat eval request finished",
        pass_rate=run.summary.pass_rate,
    )

    payload = {
        "trace_id": trace_id,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "cases_version": EVAL_CASES_VERSION,
        "provider": {
            "base_url": engine.settings.inferencia_base_url if privileged else "[hidden]",
            "model": engine.settings.inferencia_chat_model,
        },
        "limits": {"max_cases": run.max_cases, "privileged": privileged},
        "summary": asdict(run.summary),
        "cases": [asdict(result) for result in results],
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload), headers=headers)
