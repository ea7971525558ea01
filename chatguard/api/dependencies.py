"""FastAPI dependencies shared by the routers."""

import hmac

from fastapi import Depends, HTTPException, Request, status

from chatguard.engine import ChatGuardEngine

UNKNOWN_CLIENT = "unknown"


def get_engine(request: Request) -> ChatGuardEngine:
    """Engine built at startup and stored on ``app.state``."""
    return request.app.state.engine


def client_key(request: Request) -> str:
    """Rate-limit key: first ``x-forwarded-for`` hop, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    if request.client is not None and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def _provided_admin_secret(request: Request) -> str:
    header = request.headers.get("x-admin-secret")
    if header:
        return header
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        return authorization[len("bearer ") :].strip()
    return ""


def require_admin(request: Request, engine: ChatGuardEngine = Depends(get_engine)) -> None:
    """Reject unless the admin secret is configured and matches.

    Raises:
        HTTPException: 401 when the secret is unset or does not match
    """
    secret = engine.settings.admin_secret
    provided = _provided_admin_secret(request)
    if not secret or not provided or not hmac.compare_digest(provided.encode(), secret.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
