"""Public chat endpoints."""

import math
import re

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from chatguard.api.dependencies import client_key, get_engine
from chatguard.api.schemas import ChatErrorResponse, ChatRequest, ChatResponse, SaveEmailRequest
from chatguard.engine import ChatGuardEngine

router = APIRouter(prefix="/api/chat", tags=["chat"])

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@router.post("", response_model=ChatResponse, responses={400: {"model": ChatErrorResponse}, 429: {"model": ChatErrorResponse}})
async def chat(req: ChatRequest, request: Request, engine: ChatGuardEngine = Depends(get_engine)) -> JSONResponse:
    """Run one chat turn through the admission and safety gate."""
    outcome = await engine.chat(req.messages, source_key=client_key(request), session_id=req.session_id)
    headers = {"X-Trace-Id": outcome.trace_id}

    if outcome.remaining is not None:
        headers["X-RateLimit-Remaining"] = str(outcome.remaining)

    if not outcome.ok:
        body = ChatErrorResponse(error=outcome.error or "Request rejected.", trace_id=outcome.trace_id)
        if outcome.kind == "admission" and outcome.reset_at is not None:
            body.reset_at = outcome.reset_at
            retry_after = max(0, math.ceil(outcome.reset_at - engine.telemetry.clock()))
            headers["Retry-After"] = str(retry_after)
        return JSONResponse(status_code=outcome.status_code, content=body.model_dump(exclude_none=True), headers=headers)

    body = ChatResponse(
        response=outcome.response or "",
        trace_id=outcome.trace_id,
        cached=outcome.cached,
        remaining=outcome.remaining,
    )
    return JSONResponse(status_code=200, content=body.model_dump(), headers=headers)


@router.post("/save-email")
def save_email(req: SaveEmailRequest, engine: ChatGuardEngine = Depends(get_engine)) -> JSONResponse:
    """Attach a contact email to an existing chat session."""
    session_id = (req.session_id or "").strip()
    if not session_id:
        return JSONResponse(status_code=400, content={"error": "Missing session_id"})

    email = (req.email or "").strip()
    if not email or not EMAIL_PATTERN.match(email):
        return JSONResponse(status_code=400, content={"error": "Valid email required"})

    if not engine.session_store.configured:
        return JSONResponse(status_code=503, content={"error": "Failed to save email"})

    try:
        saved = engine.session_store.set_contact_email(session_id, email)
    except Exception as e:
        logger.warning(f"Failed to save contact email: {type(e).__name__}")
        return JSONResponse(status_code=503, content={"error": "Failed to save email"})

    if not saved:
        return JSONResponse(status_code=404, content={"error": "Unknown session"})

    logger.info("Chat session email captured", session_id=session_id)
    return JSONResponse(status_code=200, content={"ok": True})
