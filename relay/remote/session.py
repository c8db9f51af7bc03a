"""One authenticated SSH channel to the origin host.

A session is opened per start request and torn down before the response
is produced.  There is no pooling: each request pays the handshake, and a
stale connection can never leak from one request into the next.
"""

import asyncio
import logging

import asyncssh

from relay.errors import AuthError, ConfigError, ConnectivityError, DispatchError, RelayTimeout

logger = logging.getLogger("remote.session")

# Upper bound on waiting for the transport to shut down cleanly.
_CLOSE_TIMEOUT = 5.0


class RemoteSession:
    def __init__(self, conn: asyncssh.SSHClientConnection, host: str = ""):
        self._conn = conn
        self.host = host
        self._closed = False

    @classmethod
    async def open(
        cls,
        host: str,
        username: str,
        credential: asyncssh.SSHKey | None,
        *,
        port: int = 22,
        known_hosts: str | None = None,
        timeout: float = 10.0,
    ) -> "RemoteSession":
        """Connect and authenticate, bounded by ``timeout`` seconds.

        Missing host, user or key raise ConfigError before any socket is
        opened.  No retries here; callers decide whether to try again.
        """
        if not host or not host.strip():
            raise ConfigError("Remote host is not configured")
        if not username or not username.strip():
            raise ConfigError("Remote user is not configured")
        if credential is None:
            raise ConfigError("No SSH private key configured")

        logger.info("Connecting to %s@%s:%d", username, host, port)
        try:
            conn = await asyncio.wait_for(
                asyncssh.connect(
                    host,
                    port=port,
                    username=username,
                    client_keys=[credential],
                    known_hosts=known_hosts or None,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("SSH connection to %s timed out after %.1fs", host, timeout)
            raise RelayTimeout(f"Timed out connecting to remote host after {timeout:g}s")
        except asyncssh.PermissionDenied as e:
            logger.warning("SSH authentication to %s rejected: %s", host, e.reason)
            raise AuthError(f"Remote host rejected authentication: {e.reason}") from e
        except asyncssh.Error as e:
            logger.warning("SSH connection to %s failed: %s", host, e.reason)
            raise ConnectivityError(f"SSH connection failed: {e.reason}") from e
        except OSError as e:
            logger.warning("SSH connection to %s failed: %s", host, e)
            raise ConnectivityError(f"SSH connection failed: {e.strerror or e}") from e

        logger.info("SSH connection established with %s", host)
        return cls(conn, host)

    @property
    def closed(self) -> bool:
        return self._closed

    async def dispatch(self, command: str, timeout: float = 10.0):
        """Submit ``command`` and return once the remote shell accepts it.

        The exec channel is closed straight after acceptance.  We never wait
        for the exit status: for a detached command that status belongs to
        the ``nohup`` wrapper, and a shell that keeps its stdout open would
        hold the request forever.
        """
        if self._closed:
            raise DispatchError("Remote session is already closed")
        try:
            chan, _ = await asyncio.wait_for(
                self._conn.create_session(asyncssh.SSHClientSession, command),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise RelayTimeout(f"Remote shell did not accept the command within {timeout:g}s")
        except asyncssh.ChannelOpenError as e:
            raise DispatchError(f"Remote shell rejected the command: {e.reason}") from e
        except (asyncssh.Error, OSError) as e:
            raise ConnectivityError(f"SSH channel failed: {e}") from e
        chan.close()

    async def close(self):
        """Close the connection.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._conn.close()
        try:
            await asyncio.wait_for(self._conn.wait_closed(), timeout=_CLOSE_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("SSH connection to %s did not close within %.0fs", self.host, _CLOSE_TIMEOUT)
        logger.debug("SSH connection to %s closed", self.host)
