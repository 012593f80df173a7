"""Sentence assembly over the inbound RouterOS API byte stream.

The assembler is fed raw chunks exactly as they arrive from the socket.
It frames words, closes a sentence at each zero-length word, and groups
sentences into replies: a run of sentences ending in ``!done``.

    assembler = SentenceAssembler()
    for reply in assembler.feed(chunk):
        ...  # reply is a list of sentences, the last one tagged !done

Chunk boundaries may fall anywhere (inside a length prefix, a word body, or
between sentences); incomplete input stays buffered until the next ``feed``.
"""

import logging
from typing import Final

from routeros_api.infra.routeros.exceptions import RouterOSProtocolError
from routeros_api.infra.routeros.wire import NEED_MORE, try_read_word

logger = logging.getLogger(__name__)

TAG_REPLY: Final[str] = "!re"
TAG_DONE: Final[str] = "!done"
TAG_TRAP: Final[str] = "!trap"
TAG_FATAL: Final[str] = "!fatal"

# Sentences that end a reply run
TERMINAL_TAGS: Final[frozenset[str]] = frozenset({TAG_DONE, TAG_FATAL})

Sentence = list[str]


class SentenceAssembler:
    """Incremental word/sentence/reply decoder for one connection.

    Attributes:
        max_buffer_bytes: Upper bound on bytes held for the reply in progress,
            undecoded input plus closed sentences of the unterminated run
            (None disables the check)
    """

    def __init__(self, max_buffer_bytes: int | None = None) -> None:
        self.max_buffer_bytes = max_buffer_bytes

        self._buffer = bytearray()
        self._sentence: Sentence = []
        self._run: list[Sentence] = []
        self._run_bytes = 0

    @property
    def pending_bytes(self) -> int:
        """Number of received bytes not yet decoded into words."""
        return len(self._buffer)

    @property
    def pending_sentences(self) -> list[Sentence]:
        """Closed sentences of the current, not yet terminated, run."""
        return list(self._run)

    def feed(self, data: bytes) -> list[list[Sentence]]:
        """Consume a chunk and return every reply it completes.

        Args:
            data: Bytes exactly as received

        Returns:
            Completed replies in arrival order (possibly empty)

        Raises:
            RouterOSProtocolError: If the reply in progress exceeds max_buffer_bytes
        """
        self._buffer.extend(data)

        replies: list[list[Sentence]] = []
        offset = 0
        while True:
            result = try_read_word(self._buffer, offset)
            if result is NEED_MORE:
                break

            word, consumed = result
            offset += consumed
            self._run_bytes += consumed

            if word:
                self._sentence.append(word)
                continue

            reply = self._close_sentence()
            if reply is not None:
                replies.append(reply)

        if offset:
            del self._buffer[:offset]

        held = len(self._buffer) + self._run_bytes
        if self.max_buffer_bytes is not None and held > self.max_buffer_bytes:
            raise RouterOSProtocolError(
                f"Receive buffer exceeded {self.max_buffer_bytes} bytes "
                f"without completing a reply ({held} bytes pending)"
            )

        return replies

    def reset(self) -> None:
        """Drop buffered bytes and any partial sentence or run."""
        self._buffer.clear()
        self._sentence = []
        self._run = []
        self._run_bytes = 0

    def _close_sentence(self) -> list[Sentence] | None:
        sentence = self._sentence
        self._sentence = []

        if not sentence:
            # Bare terminator, nothing to store
            return None

        self._run.append(sentence)
        logger.debug("Sentence closed: %s", sentence[0])

        if sentence[0] not in TERMINAL_TAGS:
            return None

        reply = self._run
        self._run = []
        self._run_bytes = 0
        return reply
