"""Ops API router: health and war-room dashboard."""

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from loguru import logger

from chatguard.api.dependencies import get_engine
from chatguard.engine import ChatGuardEngine

router = APIRouter(prefix="/api", tags=["ops"])


@router.get("/health")
def get_health(engine: ChatGuardEngine = Depends(get_engine)) -> JSONResponse:
    """Health view. 503 only when a check is down; degraded still serves 200."""
    health = engine.health()
    logger.info("Health check", status=health.status, uptime_seconds=health.uptime_seconds)

    return JSONResponse(
        status_code=503 if health.status == "unhealthy" else 200,
        content=jsonable_encoder(health),
        headers={"Cache-Control": "no-store, max-age=0"},
    )


@router.get("/war-room/data")
def get_war_room_data(engine: ChatGuardEngine = Depends(get_engine)) -> JSONResponse:
    """Dashboard snapshot (cached for 10 seconds).

    Returns:
        WarRoomData as JSON with ``X-Cache: HIT|MISS``
    """
    data, hit = engine.dashboard()
    if not hit:
        logger.info(
            "War room data request",
            total_requests=data.request_metrics.total_24h,
            uptime=data.infrastructure.uptime_seconds,
        )

    return JSONResponse(
        content=jsonable_encoder(data),
        headers={"Cache-Control": "public, max-age=10", "X-Cache": "HIT" if hit else "MISS"},
    )
