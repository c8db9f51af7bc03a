"""Relay error taxonomy.

Every failure a request can hit is one of these.  They are raised by the
component that owns the failing library and converted to a JSON body
(``{"error": message}``) by the handler registered in ``relay.main``.
"""


class RelayError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigError(RelayError):
    """A required setting is missing or invalid."""

    status_code = 400


class ValidationError(RelayError):
    """Malformed stream identifier or filename."""

    status_code = 400


class AuthError(RelayError):
    """The remote host rejected our credentials."""

    status_code = 401


class ConnectivityError(RelayError):
    """Network-level failure reaching the remote host."""

    status_code = 502


class DispatchError(RelayError):
    """The remote shell refused the start command."""

    status_code = 500


class OriginUnavailable(RelayError):
    """Origin fetch failed, or returned something we cannot relay."""

    status_code = 502


class RelayTimeout(RelayError):
    status_code = 504
