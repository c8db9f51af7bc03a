"""HLS relay routes.

``/proxy/stream/{id}`` fetches the origin's playlist for a stream and
rewrites its URI lines so every nested playlist and segment is requested
through ``/proxy/segment/{id}/{file}``.  Segment requests are piped through
byte-for-byte without buffering the body.

Errors raised before the response starts become JSON bodies (see
``relay.main``).  Once segment bytes are flowing, a failure can only abort
the connection.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from relay.errors import OriginUnavailable, RelayError
from relay.origin import OriginResponse
from relay.playlist import rewrite
from relay.resources import PLAYLIST_CONTENT_TYPE, RelayResource, validate_stream_id

logger = logging.getLogger("hls_proxy")

router = APIRouter(prefix="/proxy")

# Headers to forward from an origin segment response.
_FORWARD_HEADERS = ("content-length", "content-encoding", "cache-control", "last-modified", "etag")


@router.get("/stream/{stream_id}")
async def proxy_playlist(stream_id: str, request: Request):
    """Fetch a stream's playlist from the origin and rewrite it."""
    validate_stream_id(stream_id)
    origin = request.app.state.origin
    status, text = await origin.fetch_text(origin.playlist_url(stream_id))
    if not 200 <= status < 300:
        logger.warning("Origin returned HTTP %d for playlist of %s", status, stream_id)
        raise OriginUnavailable(
            f"Origin returned HTTP {status} for stream {stream_id}",
            status_code=status if status >= 400 else 502,
        )
    return Response(
        content=rewrite(text, stream_id),
        media_type=PLAYLIST_CONTENT_TYPE,
        headers={"Cache-Control": "no-cache"},
    )


async def _relay_body(upstream: OriginResponse, resource: RelayResource):
    sent = 0
    try:
        async for chunk in upstream.stream():
            sent += len(chunk)
            yield chunk
    except RelayError as e:
        logger.warning(
            "Aborting %s/%s after %d bytes: %s",
            resource.stream_id, resource.filename, sent, e.message,
        )
        raise
    finally:
        # Also runs on client disconnect, which cancels this generator.
        await upstream.aclose()


@router.get("/segment/{stream_id}/{filename}")
async def proxy_segment(stream_id: str, filename: str, request: Request):
    """Relay a segment or nested playlist from the origin, unmodified."""
    resource = RelayResource.parse(stream_id, filename)
    origin = request.app.state.origin
    upstream = await origin.fetch(resource.origin_url(origin.base_url))

    headers = {k: upstream.headers[k] for k in _FORWARD_HEADERS if k in upstream.headers}
    media_type = resource.content_type
    if not upstream.ok:
        logger.info(
            "Origin returned HTTP %d for %s/%s, passing through",
            upstream.status_code, resource.stream_id, resource.filename,
        )
        media_type = upstream.headers.get("content-type", media_type)

    return StreamingResponse(
        _relay_body(upstream, resource),
        status_code=upstream.status_code,
        media_type=media_type,
        headers=headers,
        background=BackgroundTask(upstream.aclose),
    )
