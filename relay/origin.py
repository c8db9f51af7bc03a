"""HTTP client for the origin HLS server.

A single ``httpx.AsyncClient`` is shared by all relay requests, created in
the app lifespan and closed at shutdown.  Every request is bounded by the
configured connect/read timeouts; a stalled origin surfaces as
``RelayTimeout`` instead of holding the worker.

Non-2xx responses are returned, not raised: the relay decides whether an
origin error page is worth passing on.
"""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

import httpx

from relay.config import Settings
from relay.errors import ConfigError, OriginUnavailable, RelayTimeout, ValidationError

logger = logging.getLogger("origin")


@dataclass
class OriginResponse:
    status_code: int
    headers: httpx.Headers
    _response: httpx.Response
    chunk_size: int = 64 * 1024

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield the raw body in bounded chunks, pulling only as fast as consumed.

        Bytes are passed through undecoded so they match the forwarded
        content-length and content-encoding headers.
        """
        try:
            async for chunk in self._response.aiter_raw(self.chunk_size):
                yield chunk
        except httpx.TimeoutException as e:
            raise RelayTimeout("Origin stalled mid-transfer") from e
        except httpx.HTTPError as e:
            raise OriginUnavailable(f"Origin transfer failed: {e}") from e

    async def read(self) -> bytes:
        """Read and decode the whole body.  Only for small resources."""
        try:
            return await self._response.aread()
        except httpx.TimeoutException as e:
            raise RelayTimeout("Origin stalled mid-transfer") from e
        except httpx.HTTPError as e:
            raise OriginUnavailable(f"Origin transfer failed: {e}") from e

    async def aclose(self):
        await self._response.aclose()


class OriginFetcher:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        timeout = httpx.Timeout(
            connect=settings.origin_connect_timeout_s,
            read=settings.origin_read_timeout_s,
            write=settings.origin_write_timeout_s,
            pool=settings.origin_pool_timeout_s,
        )
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self):
        await self._client.aclose()

    @property
    def base_url(self) -> str:
        base = self._settings.origin_base_url.strip().rstrip("/")
        if not base:
            raise ConfigError("Origin base URL is not configured")
        return base

    def playlist_url(self, stream_id: str) -> str:
        return f"{self.base_url}/{stream_id}/{self._settings.origin_playlist_name}"

    async def fetch(self, url: str) -> OriginResponse:
        """GET ``url`` and return once the status line and headers arrive.

        The body is left unread; the caller must ``aclose()`` the result.
        """
        try:
            request = self._client.build_request("GET", url)
        except httpx.InvalidURL as e:
            raise ValidationError(f"Cannot build origin URL: {e}") from e
        try:
            response = await self._client.send(request, stream=True)
        except httpx.TimeoutException as e:
            logger.warning("Origin timeout: %s (%s)", url, type(e).__name__)
            raise RelayTimeout("Origin did not respond in time") from e
        except httpx.HTTPError as e:
            logger.warning("Origin unreachable: %s (%s)", url, e)
            raise OriginUnavailable(f"Origin unreachable: {type(e).__name__}") from e
        return OriginResponse(
            status_code=response.status_code,
            headers=response.headers,
            _response=response,
            chunk_size=self._settings.segment_chunk_size,
        )

    async def fetch_text(self, url: str) -> tuple[int, str]:
        """GET a small text resource (a playlist) and return (status, body)."""
        upstream = await self.fetch(url)
        try:
            body = await upstream.read()
        finally:
            await upstream.aclose()
        if not upstream.ok:
            # Error pages only matter for their status.
            return upstream.status_code, body.decode("utf-8", errors="replace")
        try:
            return upstream.status_code, body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise OriginUnavailable("Origin returned a playlist that is not UTF-8") from e
