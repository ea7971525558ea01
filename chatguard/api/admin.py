"""Admin session viewer API (shared-secret auth)."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from chatguard.api.dependencies import get_engine, require_admin
from chatguard.engine import ChatGuardEngine

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
    include_in_schema=False,
)


@router.get("/sessions")
def list_sessions(
    limit: int = Query(default=50, ge=1, le=100),
    engine: ChatGuardEngine = Depends(get_engine),
):
    """Most recently active sessions, newest first."""
    sessions = engine.session_store.list_sessions(limit)
    return {"sessions": jsonable_encoder([asdict(session) for session in sessions])}


@router.get("/sessions/{session_id}")
def get_session(session_id: str, engine: ChatGuardEngine = Depends(get_engine)):
    """One session summary with its stored message memory."""
    session = engine.session_store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return {
        "session": jsonable_encoder(asdict(session)),
        "memory": engine.session_store.get_session_memory(session_id),
    }
