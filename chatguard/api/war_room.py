"""War-room operator endpoints that call the model."""

from fastapi import APIRouter, Depends, Request

from chatguard.api.dependencies import client_key, get_engine
from chatguard.api.schemas import ExplainErrorRequest, ExplainErrorResponse
from chatguard.engine import ChatGuardEngine

router = APIRouter(prefix="/api/war-room", tags=["ops"])


@router.post("/explain-error", response_model=ExplainErrorResponse)
async def explain_error(
    req: ExplainErrorRequest,
    request: Request,
    engine: ChatGuardEngine = Depends(get_engine),
) -> ExplainErrorResponse:
    """Explain a pasted error line (usually one from ``recent_errors``).

    Returns:
        The model's explanation. Missing credentials give 503, empty input 400,
        model failures 502 with a generic message.
    """
    explanation = await engine.explain_error(req.error_text, source_key=client_key(request))
    return ExplainErrorResponse(explanation=explanation)
