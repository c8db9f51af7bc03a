"""FastAPI application entrypoint: lifespan, routes, and error handling."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from relay.api.hls_proxy import router as hls_proxy_router
from relay.api.routes import router as api_router
from relay.config import settings
from relay.credentials import CredentialProvider
from relay.errors import RelayError
from relay.origin import OriginFetcher
from relay.remote.launcher import RemoteProcessLauncher

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    from relay.config import _resolve_env_file
    env_path = _resolve_env_file()
    logger.info(
        "Starting HLS relay (env_file=%s, exists=%s)",
        env_path, env_path.exists(),
    )
    app.state.start_time = time.time()

    # Check key material once, up front, instead of on the first start request.
    credentials = CredentialProvider(settings)
    app.state.credential_ok = credentials.check()
    settings.warn_incomplete(app.state.credential_ok)

    app.state.launcher = RemoteProcessLauncher(settings, credentials)
    app.state.origin = OriginFetcher(settings)

    logger.info("Relay ready (origin=%s, streams=%s)", settings.origin_base_url or "-", ",".join(settings.stream_ids))
    yield

    # Shutdown
    logger.info("Shutting down")
    await app.state.origin.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title="HLS Relay",
    lifespan=lifespan,
    redoc_url=None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Range"],
)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    logger.warning("%s %s -> %d %s: %s", request.method, request.url.path, exc.status_code, type(exc).__name__, exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


app.include_router(api_router)
app.include_router(hls_proxy_router)
