"""Control and status endpoints."""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel

from relay.config import settings

router = APIRouter()

logger = logging.getLogger("api.routes")


# -- Models ------------------------------------------------------------------

class StartResponse(BaseModel):
    message: str
    streams: list[str]


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    ready: bool
    missing: list[str]
    uptime_seconds: float


def stream_urls() -> list[str]:
    """Relay playlist URLs for every stream the origin publishes."""
    base = settings.public_base_url.strip().rstrip("/")
    return [f"{base}/proxy/stream/{sid}" for sid in settings.stream_ids]


# -- Endpoints ---------------------------------------------------------------

@router.get("/")
async def root():
    return {"message": "HLS relay is running"}


@router.post("/start-mt", response_model=StartResponse)
async def start_media_server(request: Request):
    """Start the origin media server on the remote host.

    Returns as soon as the remote shell has accepted the detached start
    command.  Whether the server then stays up is reported in the remote
    log, not here.
    """
    launcher = request.app.state.launcher
    outcome = await launcher.start()
    outcome.raise_for_error()
    logger.info("Media server start dispatched on %s", outcome.host)
    return StartResponse(
        message="Media server started successfully",
        streams=stream_urls(),
    )


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Readiness: is the relay configured well enough to serve requests?

    ``status`` is ``"ok"`` when every setting is present and ``"degraded"``
    otherwise, with the absent settings listed in ``missing``.  Does not
    contact the origin; a stopped media server still reports ok.
    """
    missing = settings.missing_launch_settings(request.app.state.credential_ok)
    missing += settings.missing_relay_settings()
    return HealthResponse(
        status="ok" if not missing else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        ready=not missing,
        missing=missing,
        uptime_seconds=time.time() - request.app.state.start_time,
    )
