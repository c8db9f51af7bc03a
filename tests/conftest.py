"""Test configuration: isolates settings from any local .env file."""

import os

# Point settings at a file that does not exist. Must be set before any
# relay imports so a developer's .env never leaks into tests.
os.environ["RELAY_ENV_FILE"] = "tests/.env.missing"

import asyncssh  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402

from relay import config as config_mod  # noqa: E402
from relay.origin import OriginFetcher  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def ssh_key_pem():
    key = asyncssh.generate_private_key("ssh-ed25519")
    return key.export_private_key().decode()


@pytest.fixture
def relay_settings(monkeypatch, ssh_key_pem):
    """Fully configured settings on the shared singleton."""
    s = config_mod.settings
    values = {
        "remote_host": "origin.internal",
        "remote_user": "ec2-user",
        "ssh_private_key": ssh_key_pem,
        "ssh_key_path": "",
        "start_command": "nohup setsid mediamtx > ~/mediamtx.log 2>&1 < /dev/null &",
        "origin_base_url": "http://origin.internal:8888",
        "public_base_url": "",
        "ssh_connect_timeout_s": 1.0,
        "ssh_dispatch_timeout_s": 1.0,
    }
    for k, v in values.items():
        monkeypatch.setattr(s, k, v)
    return s


@pytest.fixture
def make_origin():
    """Factory for an OriginFetcher whose traffic is answered by ``handler``."""
    def _make(settings, handler) -> OriginFetcher:
        return OriginFetcher(settings, transport=httpx.MockTransport(handler))
    return _make


class _ChunkedBody(httpx.AsyncByteStream):
    """Origin body delivered chunk by chunk, optionally failing part way."""

    def __init__(self, chunks, error=None, log=None):
        self._chunks = chunks
        self._error = error
        self._log = log
        self.closed = False

    async def __aiter__(self):
        for chunk in self._chunks:
            if self._log is not None:
                self._log.append(("pull", len(chunk)))
            yield chunk
        if self._error is not None:
            raise self._error

    async def aclose(self):
        self.closed = True


@pytest.fixture
def streamed_response():
    """Factory for origin responses whose body is not read up front."""
    def _make(status, chunks=(), *, headers=None, error=None, log=None) -> httpx.Response:
        return httpx.Response(status, headers=headers, stream=_ChunkedBody(list(chunks), error, log))
    return _make
