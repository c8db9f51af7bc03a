"""Starts the origin media server on the remote host.

The launcher reports whether the start command was *issued*.  What the
detached process does afterwards is invisible here; operators find that in
the remote log file the command redirects into.
"""

import logging
from dataclasses import dataclass

from relay.config import Settings
from relay.credentials import CredentialProvider
from relay.errors import ConfigError, RelayError
from relay.remote.session import RemoteSession

logger = logging.getLogger("remote.launcher")


@dataclass
class LaunchOutcome:
    ok: bool
    host: str = ""
    error: RelayError | None = None

    def raise_for_error(self):
        if not self.ok:
            raise self.error or RelayError("Remote launch failed")


class RemoteProcessLauncher:
    def __init__(self, settings: Settings, credentials: CredentialProvider):
        self._settings = settings
        self._credentials = credentials

    async def launch(self, session: RemoteSession, command: str) -> LaunchOutcome:
        """Dispatch ``command`` over ``session`` and close the session."""
        try:
            await session.dispatch(command, timeout=self._settings.ssh_dispatch_timeout_s)
        except RelayError as e:
            logger.warning("Start command dispatch to %s failed: %s", session.host, e.message)
            return LaunchOutcome(ok=False, host=session.host, error=e)
        finally:
            await session.close()
        logger.info("Start command accepted by %s", session.host)
        return LaunchOutcome(ok=True, host=session.host)

    async def start(self) -> LaunchOutcome:
        """Full start flow: check config, open a session, launch.

        Missing settings fail before any connection is attempted.  The
        session never outlives this call.
        """
        s = self._settings
        missing = s.missing_launch_settings()
        if missing:
            raise ConfigError(f"Missing configuration: {', '.join(missing)}")
        credential = self._credentials.load()

        session = await RemoteSession.open(
            s.remote_host,
            s.remote_user,
            credential,
            port=s.remote_port,
            known_hosts=s.ssh_known_hosts or None,
            timeout=s.ssh_connect_timeout_s,
        )
        try:
            return await self.launch(session, s.start_command)
        finally:
            await session.close()
