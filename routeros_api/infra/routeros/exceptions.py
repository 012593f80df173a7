"""RouterOS API client exceptions.

Strongly-typed exceptions for the RouterOS API (port 8728/8729) client.
Maps socket failures and device-reported errors to domain-level exceptions.

Exception hierarchy:
- RouterOSError (base)
  - RouterOSConnectionError (transport)
    - RouterOSTimeoutError
    - RouterOSNetworkError
    - RouterOSNotConnectedError
  - RouterOSProtocolError (malformed stream)
    - RouterOSFatalError (!fatal)
  - RouterOSTrapError (!trap)
    - RouterOSLoginError
  - RouterOSCommandInFlightError
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from routeros_api.infra.routeros.reply import Reply


class RouterOSError(Exception):
    """Base exception for all RouterOS API client errors."""

    pass


# Connection errors
class RouterOSConnectionError(RouterOSError):
    """Base exception for transport failures."""

    pass


class RouterOSTimeoutError(RouterOSConnectionError):
    """Raised when the connection deadline expires."""

    pass


class RouterOSNetworkError(RouterOSConnectionError):
    """Raised for socket-level failures (refused, reset, DNS, TLS)."""

    pass


class RouterOSNotConnectedError(RouterOSConnectionError):
    """Raised when an operation requires a ready connection."""

    def __init__(self, message: str = "Not connected"):
        super().__init__(message)


# Protocol errors
class RouterOSProtocolError(RouterOSError):
    """Raised when the inbound byte stream cannot be decoded."""

    pass


class RouterOSFatalError(RouterOSProtocolError):
    """Raised when the device ends the session with a !fatal sentence."""

    pass


# Device-reported errors
class RouterOSTrapError(RouterOSError):
    """Raised when the device rejects a command with a !trap sentence.

    Attributes:
        message: Trap message (or "Unknown error")
        category: Trap category attribute, if the device sent one
        reply: Full decoded reply carrying the trap
    """

    def __init__(
        self,
        message: str,
        category: str | None = None,
        reply: Reply | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.reply = reply


class RouterOSLoginError(RouterOSTrapError):
    """Raised when either login round is answered with a trap."""

    pass


class RouterOSCommandInFlightError(RouterOSError):
    """Raised when a command is sent while another one awaits its reply."""

    def __init__(self, message: str = "Another command is awaiting its reply"):
        super().__init__(message)
