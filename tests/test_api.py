"""API integration tests: start, health and root endpoints."""

import asyncssh
import pytest
from httpx import ASGITransport, AsyncClient

from relay.errors import AuthError
from relay.main import app
from relay.remote import launcher as launcher_mod
from relay.remote.session import RemoteSession


class _FakeConn:
    def __init__(self, reject=False):
        self.reject = reject
        self.commands = []
        self.close_calls = 0

    async def create_session(self, session_factory, command):
        self.commands.append(command)
        if self.reject:
            raise asyncssh.ChannelOpenError(2, "Command failed")
        return _Chan(), None

    def close(self):
        self.close_calls += 1

    async def wait_closed(self):
        return None


class _Chan:
    def close(self):
        pass


@pytest.fixture
async def api_client(relay_settings):
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
def remote(monkeypatch):
    """Replace the SSH handshake; records every session opened."""
    state = {"sessions": [], "reject": False, "open_error": None}

    async def _open(host, username, credential, **kwargs):
        if state["open_error"] is not None:
            raise state["open_error"]
        conn = _FakeConn(reject=state["reject"])
        session = RemoteSession(conn, host)
        state["sessions"].append(session)
        return session

    monkeypatch.setattr(launcher_mod.RemoteSession, "open", _open)
    return state


@pytest.mark.anyio
async def test_root(api_client):
    res = await api_client.get("/")
    assert res.status_code == 200
    assert res.json() == {"message": "HLS relay is running"}


@pytest.mark.anyio
async def test_health_when_configured(api_client):
    res = await api_client.get("/health")
    assert res.status_code == 200
    data = res.json()
    assert data["status"] == "ok"
    assert data["ready"] is True
    assert data["missing"] == []
    assert "timestamp" in data


@pytest.mark.anyio
async def test_health_reports_missing_config(api_client, monkeypatch, relay_settings):
    monkeypatch.setattr(relay_settings, "start_command", "")
    monkeypatch.setattr(relay_settings, "origin_base_url", "")
    res = await api_client.get("/health")
    assert res.status_code == 200
    data = res.json()
    assert data["status"] == "degraded"
    assert data["ready"] is False
    assert set(data["missing"]) == {"start_command", "origin_base_url"}


@pytest.mark.anyio
async def test_start_returns_configured_stream_urls(api_client, remote, relay_settings):
    res = await api_client.post("/start-mt")
    assert res.status_code == 200, res.text
    data = res.json()
    assert data["message"]
    assert data["streams"] == [f"/proxy/stream/stream{i}" for i in range(1, 6)]

    (session,) = remote["sessions"]
    assert session._conn.commands == [relay_settings.start_command]
    assert session._conn.close_calls == 1


@pytest.mark.anyio
async def test_start_uses_public_base_url(api_client, remote, monkeypatch, relay_settings):
    monkeypatch.setattr(relay_settings, "public_base_url", "https://relay.example.com/")
    res = await api_client.post("/start-mt")
    assert res.status_code == 200
    assert res.json()["streams"][0] == "https://relay.example.com/proxy/stream/stream1"


@pytest.mark.anyio
@pytest.mark.parametrize("missing", ["remote_host", "remote_user", "ssh_private_key", "start_command"])
async def test_start_with_missing_config_opens_no_session(api_client, remote, monkeypatch, relay_settings, missing):
    monkeypatch.setattr(relay_settings, missing, "")
    res = await api_client.post("/start-mt")
    assert res.status_code == 400
    assert missing in res.json()["error"]
    assert remote["sessions"] == []


@pytest.mark.anyio
async def test_start_dispatch_rejected(api_client, remote):
    remote["reject"] = True
    res = await api_client.post("/start-mt")
    assert res.status_code == 500
    assert "rejected" in res.json()["error"]
    (session,) = remote["sessions"]
    assert session.closed
    assert session._conn.close_calls == 1


@pytest.mark.anyio
async def test_start_auth_failure(api_client, remote):
    remote["open_error"] = AuthError("Remote host rejected authentication: Permission denied")
    res = await api_client.post("/start-mt")
    assert res.status_code == 401
    assert res.json() == {"error": "Remote host rejected authentication: Permission denied"}
