"""Configuration via Pydantic Settings, loaded from .env file."""

import logging
import os
from functools import cached_property
from pathlib import Path
from pydantic_settings import BaseSettings

_cfg_logger = logging.getLogger("config")

# Resolve .env path relative to the project root (parent of relay/) so it
# works regardless of the working directory the process is launched from.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

_DEFAULT_STREAM_IDS = "stream1,stream2,stream3,stream4,stream5"


def _resolve_env_file() -> Path:
    """Return an absolute path to the .env file.

    If ``RELAY_ENV_FILE`` is set, use it (resolved relative to the project
    root when not absolute).  Otherwise default to ``<project_root>/.env``.
    """
    raw = os.environ.get("RELAY_ENV_FILE", "")
    if raw:
        p = Path(raw)
        return p if p.is_absolute() else _PROJECT_ROOT / p
    return _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    # Server
    cors_allowed_origins: str = "*"

    # Remote origin host (SSH)
    remote_host: str = ""
    remote_user: str = ""
    remote_port: int = 22
    ssh_private_key: str = ""  # PEM text, e.g. injected by the hosting platform
    ssh_key_path: str = ""
    ssh_key_passphrase: str = ""
    ssh_known_hosts: str = ""  # empty = host key not verified
    ssh_connect_timeout_s: float = 10.0
    ssh_dispatch_timeout_s: float = 10.0

    # Detached start command for the origin media server.  Must background
    # itself and redirect its output, e.g.
    #   nohup setsid mediamtx /etc/mediamtx.yml > ~/mediamtx.log 2>&1 < /dev/null &
    start_command: str = ""

    # Origin HLS server
    origin_base_url: str = ""
    origin_playlist_name: str = "index.m3u8"
    origin_connect_timeout_s: float = 5.0
    origin_read_timeout_s: float = 10.0
    origin_write_timeout_s: float = 5.0
    origin_pool_timeout_s: float = 5.0
    segment_chunk_size: int = 64 * 1024

    # Streams published by the origin
    published_streams: str = _DEFAULT_STREAM_IDS
    public_base_url: str = ""

    model_config = {
        "env_file": str(_resolve_env_file()),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @cached_property
    def cors_origins(self) -> list[str]:
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]
        return origins or ["*"]

    @cached_property
    def stream_ids(self) -> list[str]:
        ids = [s.strip() for s in self.published_streams.split(",") if s.strip()]
        return ids or _DEFAULT_STREAM_IDS.split(",")

    @property
    def has_key_material(self) -> bool:
        return bool(self.ssh_private_key.strip() or self.ssh_key_path.strip())

    def missing_launch_settings(self, credential_ok: bool | None = None) -> list[str]:
        """Names of settings a start request needs but does not have.

        ``credential_ok`` overrides the plain presence check with the result
        of actually loading the key (see ``CredentialProvider``).
        """
        missing = []
        if not self.remote_host.strip():
            missing.append("remote_host")
        if not self.remote_user.strip():
            missing.append("remote_user")
        has_credential = self.has_key_material if credential_ok is None else credential_ok
        if not has_credential:
            missing.append("ssh_private_key")
        if not self.start_command.strip():
            missing.append("start_command")
        return missing

    def missing_relay_settings(self) -> list[str]:
        return [] if self.origin_base_url.strip() else ["origin_base_url"]

    def warn_incomplete(self, credential_ok: bool | None = None):
        """Log warnings about missing configuration. Called once at startup."""
        missing = self.missing_launch_settings(credential_ok)
        if missing:
            _cfg_logger.warning(
                "Start requests will be rejected until these are set: %s",
                ", ".join(name.upper() for name in missing),
            )
        if self.missing_relay_settings():
            _cfg_logger.warning(
                "ORIGIN_BASE_URL is empty, /proxy requests will be rejected."
            )
        if not self.ssh_known_hosts:
            _cfg_logger.info(
                "SSH_KNOWN_HOSTS is empty, the remote host key will not be "
                "verified. Set SSH_KNOWN_HOSTS to a known_hosts file to pin it."
            )


settings = Settings()
