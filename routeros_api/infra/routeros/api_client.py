"""RouterOS API client over plain TCP (8728) or TLS (8729).

Provides an asyncio client for the RouterOS binary API with:
- Explicit connection state machine (unconnected → ready → closed)
- Two-round /login handshake
- One command in flight at a time, matched to exactly one reply
- Error mapping to strongly-typed exceptions
- connected/error/close/trap notifications

Design principles:
- Socket callbacks run on the event loop, so buffer and pending-slot
  mutation needs no locks
- A connection deadline covers socket setup and login, never commands
- A trap fails the command but leaves the connection usable
- A lost transport fails the pending command and closes the client for good
- Never log credentials
"""

import asyncio
import logging
import ssl
import time
from collections import deque
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Final

from routeros_api.infra.observability import metrics
from routeros_api.infra.observability.logging import get_correlation_id
from routeros_api.infra.routeros.events import EventEmitter
from routeros_api.infra.routeros.exceptions import (
    RouterOSCommandInFlightError,
    RouterOSConnectionError,
    RouterOSError,
    RouterOSFatalError,
    RouterOSLoginError,
    RouterOSNetworkError,
    RouterOSNotConnectedError,
    RouterOSProtocolError,
    RouterOSTimeoutError,
    RouterOSTrapError,
)
from routeros_api.infra.routeros.reply import Reply, decode_reply
from routeros_api.infra.routeros.sentence import SentenceAssembler
from routeros_api.infra.routeros.wire import encode_sentence

if TYPE_CHECKING:
    from routeros_api.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_HOST: Final[str] = "192.168.88.1"
DEFAULT_PORT: Final[int] = 8728
DEFAULT_TLS_PORT: Final[int] = 8729
DEFAULT_MAX_BUFFER_BYTES: Final[int] = 16 * 1024 * 1024

LOGIN_COMMAND: Final[str] = "/login"

# Attribute names whose values are masked in logs
SENSITIVE_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    {"password", "wpa-pre-shared-key", "wpa2-pre-shared-key", "secret"}
)


class ConnectionState(str, Enum):
    """Lifecycle of a client connection."""

    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    LOGGING_IN = "logging_in"
    READY = "ready"
    CLOSED = "closed"


# Allowed transitions; CLOSED is terminal
_TRANSITIONS: Final[dict[ConnectionState, frozenset[ConnectionState]]] = {
    ConnectionState.UNCONNECTED: frozenset({ConnectionState.CONNECTING, ConnectionState.CLOSED}),
    ConnectionState.CONNECTING: frozenset({ConnectionState.LOGGING_IN, ConnectionState.CLOSED}),
    ConnectionState.LOGGING_IN: frozenset({ConnectionState.READY, ConnectionState.CLOSED}),
    ConnectionState.READY: frozenset({ConnectionState.CLOSED}),
    ConnectionState.CLOSED: frozenset(),
}


def redact_words(words: Sequence[str]) -> list[str]:
    """Return a copy of ``words`` safe for logging."""
    redacted = []
    for word in words:
        if word.startswith("="):
            key = word[1:].split("=", 1)[0]
            if key in SENSITIVE_ATTRIBUTES:
                word = f"={key}=***"
        redacted.append(word)
    return redacted


class RouterOSApiProtocol(asyncio.Protocol):
    """asyncio protocol forwarding transport callbacks to its client."""

    def __init__(self, client: "RouterOSApiClient") -> None:
        self._client = client

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._client._on_connection_made(transport)  # type: ignore[arg-type]

    def data_received(self, data: bytes) -> None:
        self._client._on_data(data)

    def eof_received(self) -> bool:
        # Let the transport close once the device stops sending
        return False

    def connection_lost(self, exc: Exception | None) -> None:
        self._client._on_connection_lost(exc)


class RouterOSApiClient(EventEmitter):
    """Async client for the RouterOS binary API.

    Manages one TCP/TLS connection to a single RouterOS device. Commands are
    sent one at a time; each awaits the reply terminated by ``!done``.

    Events (callbacks run synchronously, in registration order):
        connected: login succeeded, no arguments
        error: transport or protocol failure, receives the exception
        close: the socket closed, no arguments
        trap: a command was rejected, receives (message, reply)

    Example:
        client = RouterOSApiClient(
            host="192.168.88.1",
            username="admin",
            password="secret",
        )

        await client.connect()
        interfaces = await client.send(["/interface/print", "?type=ether"])
        await client.close()

        # Or as a context manager
        async with RouterOSApiClient(host="192.168.88.1") as client:
            identity = await client.send(["/system/identity/print"])
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int | None = None,
        username: str = "admin",
        password: str = "",
        timeout_seconds: float = 10.0,
        tls: bool = False,
        debug: bool = False,
        max_buffer_bytes: int | None = DEFAULT_MAX_BUFFER_BYTES,
    ) -> None:
        """Initialize RouterOS API client.

        Args:
            host: RouterOS device hostname or IP
            port: API port (default: 8728, or 8729 with TLS)
            username: RouterOS username
            password: RouterOS password
            timeout_seconds: Deadline for socket setup plus login
            tls: Use the api-ssl service (certificates are not verified)
            debug: Log every sentence sent and received
            max_buffer_bytes: Cap on bytes held for the reply in progress (None: unbounded)
        """
        super().__init__()
        self.host = host
        self.port = port if port is not None else (DEFAULT_TLS_PORT if tls else DEFAULT_PORT)
        self.username = username
        self.password = password
        self.timeout_seconds = timeout_seconds
        self.tls = tls
        self.debug = debug

        self._state = ConnectionState.UNCONNECTED
        self._transport: asyncio.Transport | None = None
        self._assembler = SentenceAssembler(max_buffer_bytes=max_buffer_bytes)
        self._pending: asyncio.Future[Reply] | None = None
        self._unclaimed: deque[Reply] = deque()
        self._replies_to_discard = 0
        self._closed: asyncio.Future[None] | None = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RouterOSApiClient":
        """Build a client from application settings."""
        return cls(
            host=settings.host,
            port=settings.effective_port,
            username=settings.username,
            password=settings.password,
            timeout_seconds=settings.timeout_seconds,
            tls=settings.tls,
            debug=settings.debug,
            max_buffer_bytes=settings.max_buffer_bytes,
        )

    # ========================================
    # State
    # ========================================

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def authenticated(self) -> bool:
        """True once login succeeded and until the connection closes."""
        return self._state is ConnectionState.READY

    connected = authenticated

    def set_credentials(self, username: str, password: str) -> None:
        """Set or update login credentials (used by the next connect)."""
        self.username = username
        self.password = password

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        if state not in _TRANSITIONS[self._state]:
            raise RouterOSError(
                f"Invalid connection state transition: {self._state.value} -> {state.value}"
            )
        logger.info(
            f"RouterOS API connection {self.host}:{self.port} "
            f"{self._state.value} -> {state.value}",
            extra={"host": self.host, "port": self.port, "state": state.value},
        )
        self._state = state

    # ========================================
    # Lifecycle
    # ========================================

    async def connect(self) -> "RouterOSApiClient":
        """Open the socket and log in.

        Returns:
            This client, in READY state

        Raises:
            RouterOSTimeoutError: If setup and login exceed timeout_seconds
            RouterOSNetworkError: On socket/TLS errors
            RouterOSLoginError: If the device answers either login round with a trap
            RouterOSNotConnectedError: If the client was already closed
        """
        if self._state is ConnectionState.CLOSED:
            raise RouterOSNotConnectedError("Connection is closed and cannot be reused")
        if self._state is not ConnectionState.UNCONNECTED:
            raise RouterOSConnectionError(
                f"Cannot connect while {self._state.value}: {self.host}:{self.port}"
            )

        self._set_state(ConnectionState.CONNECTING)

        try:
            await asyncio.wait_for(self._establish(), timeout=self.timeout_seconds)

        except TimeoutError as e:
            self._abort()
            metrics.record_connection_event(self.host, "timeout")
            error = RouterOSTimeoutError(
                f"Connection timeout after {self.timeout_seconds}s: {self.host}:{self.port}"
            )
            self.emit("error", error)
            raise error from e

        except RouterOSLoginError:
            self._abort()
            metrics.record_connection_event(self.host, "login_failed")
            raise

        except RouterOSError:
            self._abort()
            raise

        except OSError as e:
            self._abort()
            error = RouterOSNetworkError(f"Connection failed: {self.host}:{self.port}: {e}")
            metrics.record_connection_event(self.host, "error")
            self.emit("error", error)
            raise error from e

        metrics.record_connection_event(self.host, "connected")
        self.emit("connected")
        return self

    async def _establish(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.create_connection(
            lambda: RouterOSApiProtocol(self),
            self.host,
            self.port,
            ssl=self._ssl_context() if self.tls else None,
        )

        self._set_state(ConnectionState.LOGGING_IN)
        await self._login()
        self._set_state(ConnectionState.READY)

    def _ssl_context(self) -> ssl.SSLContext:
        # Devices ship self-signed certificates
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    async def _login(self) -> None:
        reply = await self._exchange([LOGIN_COMMAND])
        if reply.error is not None:
            raise RouterOSLoginError(reply.error, reply.category, reply)

        reply = await self._exchange(
            [LOGIN_COMMAND, f"=name={self.username}", f"=password={self.password}"]
        )
        if reply.error is not None:
            logger.warning(
                f"RouterOS API login rejected: {self.host} ({reply.error})",
                extra={"host": self.host, "port": self.port, "event": "login_failed"},
            )
            raise RouterOSLoginError(reply.error, reply.category, reply)

        logger.info(
            f"RouterOS API login succeeded: {self.username}@{self.host}:{self.port}",
            extra={"host": self.host, "port": self.port, "event": "authenticated"},
        )

    async def close(self) -> None:
        """Half-close the socket, wait for the device to close, release state.

        Safe to call more than once; always leaves the client CLOSED.
        """
        transport = self._transport
        closed = self._closed

        if transport is None or closed is None:
            self._release()
            return

        if not closed.done():
            if transport.can_write_eof():
                transport.write_eof()
            else:
                transport.close()

            try:
                await asyncio.wait_for(asyncio.shield(closed), timeout=self.timeout_seconds)
            except TimeoutError:
                logger.warning(
                    f"RouterOS API device did not close in {self.timeout_seconds}s, aborting: "
                    f"{self.host}:{self.port}",
                    extra={"host": self.host, "port": self.port},
                )
                transport.abort()
                await closed

        self._release()

    async def __aenter__(self) -> "RouterOSApiClient":
        return await self.connect()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _abort(self) -> None:
        """Drop the transport immediately (connection_lost follows)."""
        if self._transport is not None:
            self._transport.abort()
        self._release()

    def _release(self) -> None:
        self._set_state(ConnectionState.CLOSED)
        self._assembler.reset()
        self._unclaimed.clear()
        self._replies_to_discard = 0

    # ========================================
    # Commands
    # ========================================

    async def send(self, words: Sequence[str]) -> list[dict[str, str]]:
        """Send a command and return the records of its reply.

        Args:
            words: Command path followed by ``=key=value`` attribute and
                ``?key=value`` query words, sent verbatim

        Returns:
            One mapping per !re sentence, in order

        Raises:
            RouterOSNotConnectedError: If the client is not READY
            RouterOSCommandInFlightError: If another command is still pending
            RouterOSTrapError: If the device rejected the command
            RouterOSConnectionError: If the connection is lost while waiting

        Example:
            leases = await client.send(["/ip/dhcp-server/lease/print"])
        """
        reply = await self.execute(words)
        if reply.error is not None:
            raise RouterOSTrapError(reply.error, reply.category, reply)
        return reply.data

    async def execute(self, words: Sequence[str]) -> Reply:
        """Send a command and return its full decoded reply.

        Unlike ``send``, a trap is returned in ``Reply.error`` rather than
        raised.
        """
        if self._state is not ConnectionState.READY:
            raise RouterOSNotConnectedError()

        if isinstance(words, str):
            words = [words]
        words = list(words)
        if not words:
            raise ValueError("Command requires at least a path word")

        command = words[0]
        # Ensure this command's log lines share an id
        get_correlation_id()
        extra: dict[str, Any] = {"host": self.host, "port": self.port, "command": command}
        started = time.monotonic()

        try:
            reply = await self._exchange(words)
        except RouterOSError:
            metrics.record_command(self.host, command, time.monotonic() - started, "error")
            raise

        duration = time.monotonic() - started
        extra["duration_ms"] = round(duration * 1000, 2)

        if reply.error is not None:
            metrics.record_command(self.host, command, duration, "trap")
            metrics.record_trap(self.host, command)
            logger.warning(f"RouterOS API trap for {command}: {reply.error}", extra=extra)
            self.emit("trap", reply.error, reply)
        else:
            metrics.record_command(self.host, command, duration, "success")
            logger.debug(f"RouterOS API {command}: {len(reply.data)} record(s)", extra=extra)

        return reply

    async def _exchange(self, words: list[str]) -> Reply:
        """Write one sentence and await the single reply it gets."""
        transport = self._transport
        if transport is None or transport.is_closing():
            raise RouterOSNotConnectedError()
        if self._pending is not None:
            raise RouterOSCommandInFlightError()

        if self.debug:
            logger.debug(
                f"RouterOS API >>> {redact_words(words)}",
                extra={"host": self.host, "command": words[0]},
            )

        transport.write(encode_sentence(words))

        if self._unclaimed:
            return self._unclaimed.popleft()

        future: asyncio.Future[Reply] = asyncio.get_running_loop().create_future()
        self._pending = future
        try:
            return await future
        except asyncio.CancelledError:
            if self._pending is future:
                # The reply is still on its way; it belongs to no one now
                self._pending = None
                self._replies_to_discard += 1
            raise

    # ========================================
    # Transport callbacks
    # ========================================

    def _on_connection_made(self, transport: asyncio.Transport) -> None:
        self._transport = transport
        self._closed = asyncio.get_running_loop().create_future()
        logger.debug(
            f"RouterOS API socket connected: {self.host}:{self.port}",
            extra={"host": self.host, "port": self.port, "event": "socket_connected"},
        )

    def _on_data(self, data: bytes) -> None:
        metrics.record_bytes_received(self.host, len(data))

        try:
            runs = self._assembler.feed(data)
        except RouterOSProtocolError as e:
            self._fail(e)
            return

        for run in runs:
            reply = decode_reply(run)

            if self.debug:
                logger.debug(
                    f"RouterOS API <<< {reply.raw}",
                    extra={"host": self.host},
                )

            if reply.fatal is not None:
                self._fail(RouterOSFatalError(f"Device closed the session: {reply.fatal}"))
                return

            self._dispatch(reply)

    def _dispatch(self, reply: Reply) -> None:
        if self._replies_to_discard:
            self._replies_to_discard -= 1
            logger.debug("Discarding reply of a cancelled command", extra={"host": self.host})
            return

        future = self._pending
        if future is None:
            logger.warning(
                f"RouterOS API reply arrived with no command waiting, "
                f"queued for the next command: {self.host}:{self.port}",
                extra={"host": self.host, "port": self.port, "event": "unclaimed_reply"},
            )
            self._unclaimed.append(reply)
            return

        self._pending = None
        if not future.done():
            future.set_result(reply)

    def _fail(self, error: RouterOSError) -> None:
        """Fail the pending command and drop the connection."""
        logger.error(
            f"RouterOS API connection failed: {self.host}:{self.port}: {error}",
            extra={"host": self.host, "port": self.port, "event": "error"},
        )
        metrics.record_connection_event(self.host, "error")
        self._reject_pending(error)
        self._abort()
        self.emit("error", error)

    def _reject_pending(self, error: BaseException) -> None:
        future = self._pending
        self._pending = None
        if future is not None and not future.done():
            future.set_exception(error)

    def _on_connection_lost(self, exc: Exception | None) -> None:
        self._transport = None

        if self._pending is not None:
            error = RouterOSNetworkError(
                f"Connection lost while awaiting reply: {self.host}:{self.port}"
                + (f": {exc}" if exc else "")
            )
            error.__cause__ = exc
            self._reject_pending(error)

        self._release()
        if self._closed is not None and not self._closed.done():
            self._closed.set_result(None)

        metrics.record_connection_event(self.host, "closed")
        logger.info(
            f"RouterOS API connection closed: {self.host}:{self.port}",
            extra={"host": self.host, "port": self.port, "event": "closed"},
        )

        # State is final before observers run
        try:
            if exc is not None:
                error = RouterOSNetworkError(f"Connection error: {self.host}:{self.port}: {exc}")
                error.__cause__ = exc
                metrics.record_connection_event(self.host, "error")
                self.emit("error", error)
        finally:
            self.emit("close")
