"""Standalone retrieval endpoint."""

from fastapi import APIRouter, Depends

from chatguard.api.dependencies import get_engine
from chatguard.api.schemas import RagRequest, RagResponse
from chatguard.engine import ChatGuardEngine

router = APIRouter(prefix="/api", tags=["rag"])


@router.post("/rag", response_model=RagResponse)
async def rag(req: RagRequest, engine: ChatGuardEngine = Depends(get_engine)) -> RagResponse:
    """Return knowledge-base context for a query that passes the safety gate."""
    result = engine.retrieve(req.query, req.top_k)
    return RagResponse(context=result.context, source=result.source, top_k=result.top_k)
