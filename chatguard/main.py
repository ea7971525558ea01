import math
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from chatguard.api.admin import router as admin_router
from chatguard.api.chat import router as chat_router
from chatguard.api.rag import router as rag_router
from chatguard.api.war_room import router as war_room_router
from chatguard.config.settings import Settings, settings
from chatguard.core.errors import GENERIC_FAILURE_MESSAGE, AdmissionRejection, ChatGuardError
from chatguard.core.logger import setup_logger
from chatguard.engine import ChatGuardEngine
from chatguard.evals.router import router as eval_router
from chatguard.internal.ops.router import router as ops_router

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Cache-Control": "no-store",
}


def create_app(engine: ChatGuardEngine | None = None, app_settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI app around one engine instance.

    Args:
        engine: Pre-built engine (tests inject one); built from settings when omitted
        app_settings: Settings to use when building the engine

    Returns:
        Configured FastAPI application
    """
    app_settings = app_settings or (engine.settings if engine is not None else settings)
    setup_logger(level=app_settings.log_level, json_logs=app_settings.log_json)

    if engine is None:
        engine = ChatGuardEngine.from_settings(app_settings)

    app = FastAPI(title="chatguard", version=app_settings.app_version)
    app.state.engine = engine

    app.include_router(ops_router)
    app.include_router(chat_router)
    app.include_router(eval_router)
    app.include_router(rag_router)
    app.include_router(war_room_router)
    app.include_router(admin_router)

    @app.middleware("http")
    async def record_requests(request: Request, call_next):
        """Record every API request in telemetry and add security headers."""
        started = time.perf_counter()
        path = request.url.path
        try:
            response = await call_next(request)
        except Exception:
            # The catch-all handler runs outside this middleware
            if path.startswith("/api/"):
                duration_ms = (time.perf_counter() - started) * 1000
                engine.telemetry.record_request(path, request.method, 500, duration_ms)
            raise
        duration_ms = (time.perf_counter() - started) * 1000

        if path.startswith("/api/"):
            engine.telemetry.record_request(path, request.method, response.status_code, duration_ms)
            for name, value in SECURITY_HEADERS.items():
                response.headers.setdefault(name, value)

        logger.debug(f"Response: {response.status_code} for {request.method} {path}")
        return response

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_request: Request, _exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request format."})

    @app.exception_handler(ChatGuardError)
    async def handle_chatguard_error(_request: Request, exc: ChatGuardError) -> JSONResponse:
        logger.warning("Request failed", kind=exc.kind, status_code=exc.status_code, detail=exc.detail)
        content: dict[str, object] = {"error": exc.public_message}
        headers: dict[str, str] = {}
        if isinstance(exc, AdmissionRejection) and exc.reset_at is not None:
            content["reset_at"] = exc.reset_at
            headers["Retry-After"] = str(max(0, math.ceil(exc.reset_at - engine.telemetry.clock())))
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error(f"Unhandled error on {request.url.path}")
        engine.telemetry.errors.record_error(
            endpoint=request.url.path,
            status_code=500,
            message=type(exc).__name__,
        )
        return JSONResponse(status_code=500, content={"error": GENERIC_FAILURE_MESSAGE})

    logger.info("FastAPI application initialized", version=app_settings.app_version)
    return app
