"""Shared pytest fixtures.

These fixtures live at `tests/` scope so they are available to both unit and e2e
tests.

Key goals:
- Prevent the global settings singleton from leaking state across tests.
- Provide a scripted RouterOS API peer on the loopback interface, so client
  tests exercise real sockets without a device.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from routeros_api import config
from routeros_api.infra.routeros.reply import parse_attributes
from routeros_api.infra.routeros.wire import encode_sentence, try_read_word

Handler = list[list[str]] | Callable[[list[str]], list[list[str]]]


class FakeRouterOS:
    """Loopback RouterOS API peer answering from a table of scripted replies.

    Every received sentence is recorded in ``received``. ``/login`` is
    answered according to ``username``/``password``; other commands are
    looked up in ``handlers`` by path and answered with the listed sentences
    (or by calling the handler with the command words).
    """

    def __init__(self, username: str = "admin", password: str = "secret") -> None:
        self.username = username
        self.password = password
        self.handlers: dict[str, Handler] = {}
        self.received: list[list[str]] = []
        self.silent = False
        # Trap message for the bare /login round, if set
        self.login_trap: str | None = None
        self.port = 0

        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        for writer in self._writers:
            writer.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def drop_connections(self) -> None:
        """Reset every open client connection from the server side."""
        for writer in self._writers:
            writer.transport.abort()
        await asyncio.sleep(0.05)

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writers.append(writer)
        buffer = bytearray()
        sentence: list[str] = []

        try:
            while True:
                data = await reader.read(4096)
                if not data:
                    break
                buffer.extend(data)

                offset = 0
                while (result := try_read_word(buffer, offset)) is not None:
                    word, consumed = result
                    offset += consumed
                    if word:
                        sentence.append(word)
                        continue
                    if sentence:
                        self.received.append(sentence)
                        if not self.silent:
                            writer.write(self._respond(sentence))
                        sentence = []
                del buffer[:offset]
                await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()

    def _respond(self, sentence: list[str]) -> bytes:
        path = sentence[0]

        if path == "/login":
            if len(sentence) == 1:
                if self.login_trap is not None:
                    return encode_sentence(
                        ["!trap", f"=message={self.login_trap}"]
                    ) + encode_sentence(["!done"])
                return encode_sentence(["!done"])
            attributes = parse_attributes(sentence[1:])
            if attributes.get("name") == self.username and attributes.get("password") == self.password:
                return encode_sentence(["!done"])
            return encode_sentence(
                ["!trap", "=message=invalid user name or password (6)"]
            ) + encode_sentence(["!done"])

        handler = self.handlers.get(path)
        if handler is None:
            sentences = [["!trap", "=category=0", "=message=no such command"], ["!done"]]
        elif callable(handler):
            sentences = handler(sentence)
        else:
            sentences = handler

        return b"".join(encode_sentence(words) for words in sentences)


@pytest.fixture(autouse=True)
def _reset_global_settings() -> None:
    """Ensure the settings singleton does not leak between tests."""
    config._settings = None
    yield
    config._settings = None


@pytest.fixture
async def fake_routeros() -> FakeRouterOS:
    """Start a FakeRouterOS on an ephemeral loopback port."""
    server = FakeRouterOS()
    await server.start()

    yield server

    await server.stop()
