"""Tests for RouterOS API client command exchange and state handling."""

import asyncio
from unittest.mock import MagicMock

import pytest

from routeros_api.config import Settings
from routeros_api.infra.routeros.api_client import (
    ConnectionState,
    RouterOSApiClient,
    redact_words,
)
from routeros_api.infra.routeros.exceptions import (
    RouterOSCommandInFlightError,
    RouterOSError,
    RouterOSFatalError,
    RouterOSNetworkError,
    RouterOSNotConnectedError,
    RouterOSProtocolError,
    RouterOSTrapError,
)
from routeros_api.infra.routeros.wire import encode_length, encode_sentence


def _reply(*sentences: list[str]) -> bytes:
    return b"".join(encode_sentence(sentence) for sentence in sentences)


def _make_ready_client(**kwargs) -> tuple[RouterOSApiClient, MagicMock]:
    """Client in READY state wired to a mock transport (call inside a running loop)."""
    client = RouterOSApiClient(host="127.0.0.1", username="admin", password="secret", **kwargs)
    transport = MagicMock(spec=asyncio.Transport)
    transport.is_closing.return_value = False
    transport.can_write_eof.return_value = True
    client._on_connection_made(transport)
    client._state = ConnectionState.READY
    return client, transport


async def _started(coro) -> asyncio.Task:
    task = asyncio.create_task(coro)
    await asyncio.sleep(0)
    return task


class TestRouterOSApiClientInit:
    """Tests for client construction and configuration."""

    def test_client_initialization(self) -> None:
        """Test client initialization with default parameters."""
        client = RouterOSApiClient()

        assert client.host == "192.168.88.1"
        assert client.port == 8728
        assert client.username == "admin"
        assert client.password == ""
        assert client.timeout_seconds == 10.0
        assert client.tls is False
        assert client.state is ConnectionState.UNCONNECTED
        assert client.authenticated is False
        assert client.connected is False

    def test_tls_default_port(self) -> None:
        """Test that TLS switches the default port to 8729."""
        assert RouterOSApiClient(tls=True).port == 8729

    def test_explicit_port_wins(self) -> None:
        """Test that an explicit port is kept with TLS."""
        assert RouterOSApiClient(port=18729, tls=True).port == 18729

    def test_set_credentials(self) -> None:
        """Test setting credentials after initialization."""
        client = RouterOSApiClient()

        client.set_credentials("netops", "pa=ss")

        assert client.username == "netops"
        assert client.password == "pa=ss"

    def test_from_settings(self) -> None:
        """Test building a client from Settings."""
        settings = Settings(
            host="10.0.0.1",
            username="api",
            password="pw",
            tls=True,
            timeout_seconds=3.0,
            debug=True,
            max_buffer_bytes=4096,
        )

        client = RouterOSApiClient.from_settings(settings)

        assert client.host == "10.0.0.1"
        assert client.port == 8729
        assert client.username == "api"
        assert client.password == "pw"
        assert client.timeout_seconds == 3.0
        assert client.debug is True
        assert client._assembler.max_buffer_bytes == 4096

    def test_redact_words(self) -> None:
        """Test that secrets are masked for logging."""
        words = ["/login", "=name=admin", "=password=secret=1", "?type=ether"]

        assert redact_words(words) == ["/login", "=name=admin", "=password=***", "?type=ether"]

    def test_invalid_state_transition(self) -> None:
        """Test that transitions outside the state machine are rejected."""
        client = RouterOSApiClient()

        with pytest.raises(RouterOSError, match="unconnected -> ready"):
            client._set_state(ConnectionState.READY)


class TestRouterOSApiClientSend:
    """Tests for send/execute over a mocked transport."""

    @pytest.mark.asyncio
    async def test_send_writes_sentence_and_returns_records(self) -> None:
        """Test the full exchange of one command."""
        client, transport = _make_ready_client()

        task = await _started(client.send(["/interface/print", "?type=ether"]))
        transport.write.assert_called_once_with(encode_sentence(["/interface/print", "?type=ether"]))

        client._on_data(
            _reply(
                ["!re", "=name=ether1", "=type=ether"],
                ["!re", "=name=ether2"],
                ["!done"],
            )
        )

        assert await task == [{"name": "ether1", "type": "ether"}, {"name": "ether2"}]
        assert client._pending is None

    @pytest.mark.asyncio
    async def test_send_accepts_single_path_string(self) -> None:
        """Test that a bare path string is sent as one word."""
        client, transport = _make_ready_client()

        task = await _started(client.send("/system/identity/print"))
        client._on_data(_reply(["!re", "=name=MikroTik"], ["!done"]))

        assert await task == [{"name": "MikroTik"}]
        transport.write.assert_called_once_with(encode_sentence(["/system/identity/print"]))

    @pytest.mark.asyncio
    async def test_send_empty_command_rejected(self) -> None:
        """Test that a command needs at least its path."""
        client, transport = _make_ready_client()

        with pytest.raises(ValueError, match="path word"):
            await client.send([])

        transport.write.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state", [ConnectionState.UNCONNECTED, ConnectionState.CLOSED])
    async def test_send_requires_ready_state(self, state: ConnectionState) -> None:
        """Test that send fails with 'not connected' and writes nothing."""
        client, transport = _make_ready_client()
        client._state = state

        with pytest.raises(RouterOSNotConnectedError, match="Not connected"):
            await client.send(["/system/resource/print"])

        transport.write.assert_not_called()

    @pytest.mark.asyncio
    async def test_trap_raises_and_keeps_connection(self) -> None:
        """Test that a trap fails only the command."""
        client, transport = _make_ready_client()
        traps = []
        client.on("trap", lambda message, reply: traps.append((message, reply.category)))

        task = await _started(client.send(["/ip/address/remove", "=.id=*99"]))
        client._on_data(_reply(["!trap", "=category=1", "=message=no such item"], ["!done"]))

        with pytest.raises(RouterOSTrapError, match="no such item") as exc_info:
            await task

        assert exc_info.value.category == "1"
        assert exc_info.value.reply.raw[0][0] == "!trap"
        assert traps == [("no such item", "1")]
        assert client.state is ConnectionState.READY

        task = await _started(client.send(["/ip/address/print"]))
        client._on_data(_reply(["!done"]))
        assert await task == []

    @pytest.mark.asyncio
    async def test_execute_returns_trap_in_reply(self) -> None:
        """Test that execute reports traps without raising."""
        client, _ = _make_ready_client()

        task = await _started(client.execute(["/ip/address/add", "=address=bogus"]))
        client._on_data(_reply(["!trap", "=message=invalid value"], ["!done"]))

        reply = await task
        assert reply.error == "invalid value"
        assert reply.data == []

    @pytest.mark.asyncio
    async def test_execute_exposes_done_attributes(self) -> None:
        """Test that /add's returned id is available."""
        client, _ = _make_ready_client()

        task = await _started(client.execute(["/interface/bridge/add", "=name=br0"]))
        client._on_data(_reply(["!done", "=ret=*7"]))

        assert (await task).done == {"ret": "*7"}

    @pytest.mark.asyncio
    async def test_second_command_while_pending_rejected(self) -> None:
        """Test the capacity-one exchange slot."""
        client, transport = _make_ready_client()

        first = await _started(client.send(["/system/identity/print"]))

        with pytest.raises(RouterOSCommandInFlightError):
            await client.send(["/system/resource/print"])

        assert transport.write.call_count == 1

        client._on_data(_reply(["!re", "=name=r1"], ["!done"]))
        assert await first == [{"name": "r1"}]

    @pytest.mark.asyncio
    async def test_reply_split_across_chunks(self) -> None:
        """Test that arbitrary chunking gives the same result."""
        payload = _reply(["!re", "=name=ether1", "=comment=uplink"], ["!done"])

        for split in (1, 2, 7, len(payload) - 1):
            client, _ = _make_ready_client()
            task = await _started(client.send(["/interface/print"]))

            client._on_data(payload[:split])
            await asyncio.sleep(0)
            assert not task.done()

            client._on_data(payload[split:])
            assert await task == [{"name": "ether1", "comment": "uplink"}]

    @pytest.mark.asyncio
    async def test_sequential_sends_with_replies_in_one_chunk(self) -> None:
        """Test that replies arriving together are handed out in command order."""
        client, _ = _make_ready_client()

        first = await _started(client.send(["/system/identity/print"]))
        client._on_data(
            _reply(["!re", "=name=r1"], ["!done"]) + _reply(["!re", "=cpu-load=3"], ["!done"])
        )

        assert await first == [{"name": "r1"}]
        assert await client.send(["/system/resource/print"]) == [{"cpu-load": "3"}]

    @pytest.mark.asyncio
    async def test_cancelled_command_reply_is_discarded(self) -> None:
        """Test that a late reply is not matched to the next command."""
        client, _ = _make_ready_client()

        first = await _started(client.send(["/tool/ping", "=address=10.0.0.1", "=count=50"]))
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        second = await _started(client.send(["/system/identity/print"]))
        client._on_data(_reply(["!re", "=seq=0"], ["!done"]))
        await asyncio.sleep(0)
        assert not second.done()

        client._on_data(_reply(["!re", "=name=r1"], ["!done"]))
        assert await second == [{"name": "r1"}]


class TestRouterOSApiClientFailures:
    """Tests for transport loss and protocol failures."""

    @pytest.mark.asyncio
    async def test_connection_lost_rejects_pending(self) -> None:
        """Test that a reset fails the pending command and closes the client."""
        client, _ = _make_ready_client()
        events: list[str] = []
        client.on("error", lambda exc: events.append(f"error:{type(exc).__name__}"))
        client.on("close", lambda: events.append("close"))

        task = await _started(client.send(["/interface/print"]))
        client._on_connection_lost(ConnectionResetError("reset by peer"))

        with pytest.raises(RouterOSNetworkError, match="reset by peer") as exc_info:
            await task

        assert isinstance(exc_info.value.__cause__, ConnectionResetError)
        assert events == ["error:RouterOSNetworkError", "close"]
        assert client.state is ConnectionState.CLOSED

        with pytest.raises(RouterOSNotConnectedError):
            await client.send(["/interface/print"])

    @pytest.mark.asyncio
    async def test_clean_close_by_peer_rejects_pending(self) -> None:
        """Test that EOF while waiting fails the command without an error event."""
        client, _ = _make_ready_client()
        errors = []
        client.on("error", errors.append)

        task = await _started(client.send(["/interface/print"]))
        client._on_connection_lost(None)

        with pytest.raises(RouterOSNetworkError, match="Connection lost"):
            await task

        assert errors == []
        assert client.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_fatal_ends_connection(self) -> None:
        """Test that !fatal fails the pending command and aborts the socket."""
        client, transport = _make_ready_client()
        errors = []
        client.on("error", errors.append)

        task = await _started(client.send(["/system/reboot"]))
        client._on_data(_reply(["!fatal", "session terminated on request"]))

        with pytest.raises(RouterOSFatalError, match="session terminated on request"):
            await task

        transport.abort.assert_called_once()
        assert client.state is ConnectionState.CLOSED
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_buffer_overflow_fails_connection(self) -> None:
        """Test that an oversized frame fails the connection."""
        client, transport = _make_ready_client(max_buffer_bytes=1024)

        task = await _started(client.send(["/file/print"]))
        client._on_data(encode_length(1_000_000) + b"x" * 4096)

        with pytest.raises(RouterOSProtocolError, match="exceeded 1024 bytes"):
            await task

        transport.abort.assert_called_once()
        assert client.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_failing_error_listener_on_connection_lost(self) -> None:
        """Test that a raising error listener still leaves the client closed."""
        client, _ = _make_ready_client()
        closes = []

        def broken_listener(exc: Exception) -> None:
            raise RuntimeError("listener bug")

        client.on("error", broken_listener)
        client.on("close", lambda: closes.append(True))
        task = await _started(client.send(["/interface/print"]))

        with pytest.raises(RuntimeError, match="listener bug"):
            client._on_connection_lost(ConnectionResetError("reset by peer"))

        assert client.state is ConnectionState.CLOSED
        assert client.authenticated is False
        assert client._closed.done()
        assert closes == [True]
        with pytest.raises(RouterOSNetworkError):
            await task

    @pytest.mark.asyncio
    async def test_failing_error_listener_on_fatal(self) -> None:
        """Test that a raising error listener does not keep the socket open."""
        client, transport = _make_ready_client()

        def broken_listener(exc: Exception) -> None:
            raise RuntimeError("listener bug")

        client.on("error", broken_listener)
        task = await _started(client.send(["/system/reboot"]))

        with pytest.raises(RuntimeError, match="listener bug"):
            client._on_data(_reply(["!fatal", "session terminated on request"]))

        transport.abort.assert_called_once()
        assert client.state is ConnectionState.CLOSED
        with pytest.raises(RouterOSFatalError):
            await task

    @pytest.mark.asyncio
    async def test_unclaimed_reply_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that a reply nobody waits for is reported."""
        client, _ = _make_ready_client()

        with caplog.at_level("WARNING", logger="routeros_api.infra.routeros.api_client"):
            client._on_data(_reply(["!re", "=name=stray"], ["!done"]))

        assert "no command waiting" in caplog.text
        assert len(client._unclaimed) == 1


class TestRouterOSApiClientClose:
    """Tests for close()."""

    @pytest.mark.asyncio
    async def test_close_half_closes_and_waits(self) -> None:
        """Test write_eof followed by the peer's close."""
        client, transport = _make_ready_client()
        loop = asyncio.get_running_loop()
        transport.write_eof.side_effect = lambda: loop.call_soon(client._on_connection_lost, None)
        closes = []
        client.on("close", lambda: closes.append(True))

        await client.close()

        transport.write_eof.assert_called_once()
        transport.abort.assert_not_called()
        assert closes == [True]
        assert client.state is ConnectionState.CLOSED

        await client.close()
        assert closes == [True]

    @pytest.mark.asyncio
    async def test_close_without_half_close_support(self) -> None:
        """Test that TLS-style transports are closed outright."""
        client, transport = _make_ready_client()
        loop = asyncio.get_running_loop()
        transport.can_write_eof.return_value = False
        transport.close.side_effect = lambda: loop.call_soon(client._on_connection_lost, None)

        await client.close()

        transport.write_eof.assert_not_called()
        transport.close.assert_called_once()
        assert client.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_close_aborts_when_peer_does_not_close(self) -> None:
        """Test the abort fallback after timeout_seconds."""
        client, transport = _make_ready_client(timeout_seconds=0.05)
        loop = asyncio.get_running_loop()
        transport.abort.side_effect = lambda: loop.call_soon(client._on_connection_lost, None)

        await client.close()

        transport.abort.assert_called_once()
        assert client.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_close_unconnected_client_is_terminal(self) -> None:
        """Test that a closed client cannot be reused."""
        client = RouterOSApiClient()

        await client.close()

        assert client.state is ConnectionState.CLOSED
        with pytest.raises(RouterOSNotConnectedError, match="cannot be reused"):
            await client.connect()
