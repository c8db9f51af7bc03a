"""SSH key material for the remote origin host.

The key comes from configuration only: either PEM text in
``SSH_PRIVATE_KEY`` (the form most hosting platforms can inject) or a file
named by ``SSH_KEY_PATH``.  Nothing is written to disk.  The provider is
checked once at startup and then handed to the launcher.
"""

import logging

import asyncssh

from relay.config import Settings
from relay.errors import ConfigError

logger = logging.getLogger("credentials")


class CredentialProvider:
    def __init__(self, settings: Settings):
        self._settings = settings
        self._key: asyncssh.SSHKey | None = None

    @property
    def source(self) -> str:
        if self._settings.ssh_private_key.strip():
            return "SSH_PRIVATE_KEY"
        if self._settings.ssh_key_path.strip():
            return f"SSH_KEY_PATH={self._settings.ssh_key_path}"
        return "none"

    def load(self) -> asyncssh.SSHKey:
        """Return the parsed private key, raising ConfigError if unusable."""
        if self._key is not None:
            return self._key

        passphrase = self._settings.ssh_key_passphrase or None
        pem = self._settings.ssh_private_key.strip()
        path = self._settings.ssh_key_path.strip()
        try:
            if pem:
                # Platforms often flatten newlines in env vars.
                key = asyncssh.import_private_key(pem.replace("\\n", "\n"), passphrase)
            elif path:
                key = asyncssh.read_private_key(path, passphrase)
            else:
                raise ConfigError("No SSH private key configured")
        except asyncssh.KeyImportError as e:
            raise ConfigError(f"SSH private key from {self.source} is invalid: {e}") from e
        except OSError as e:
            raise ConfigError(f"SSH private key file unreadable: {e.strerror or e}") from e

        self._key = key
        return key

    def check(self) -> bool:
        """Startup check: True when key material loads, logs why otherwise."""
        try:
            self.load()
        except ConfigError as e:
            logger.error("Credential check failed: %s", e.message)
            return False
        logger.info("SSH key loaded from %s", self.source)
        return True
