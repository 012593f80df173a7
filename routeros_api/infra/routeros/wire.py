"""RouterOS API wire format: word lengths and word framing.

Every word on the wire is its UTF-8 body prefixed by the body's byte length.
The length is a little-endian base-128 varint: 7 bits per byte, low-order
group first, with 0x80 set on every byte except the last.

A sentence is a run of words followed by a zero-length word.

Decoders return ``NEED_MORE`` when the buffer ends before the value is
complete. That is not an error: the caller keeps the bytes and retries once
more data has arrived.
"""

from collections.abc import Iterable
from typing import Final

NEED_MORE: Final = None

CONTINUATION_BIT: Final[int] = 0x80
PAYLOAD_MASK: Final[int] = 0x7F

SENTENCE_TERMINATOR: Final[bytes] = b"\x00"


def encode_length(length: int) -> bytes:
    """Encode a word length as a continuation-bit varint.

    Args:
        length: Non-negative byte length

    Returns:
        Encoded length (one byte for lengths below 128)

    Raises:
        ValueError: If length is negative
    """
    if length < 0:
        raise ValueError(f"Word length must be non-negative, got {length}")

    encoded = bytearray()
    while True:
        byte = length & PAYLOAD_MASK
        length >>= 7
        if length == 0:
            encoded.append(byte)
            return bytes(encoded)
        encoded.append(byte | CONTINUATION_BIT)


def decode_length(buffer: bytes | bytearray | memoryview, offset: int = 0) -> tuple[int, int] | None:
    """Decode a varint length from ``buffer`` starting at ``offset``.

    Args:
        buffer: Received bytes
        offset: Position of the first length byte

    Returns:
        ``(length, bytes_consumed)`` or ``NEED_MORE`` if no terminating byte
        has arrived yet
    """
    length = 0
    shift = 0
    index = offset
    end = len(buffer)

    while index < end:
        byte = buffer[index]
        index += 1
        length |= (byte & PAYLOAD_MASK) << shift
        if not byte & CONTINUATION_BIT:
            return length, index - offset
        shift += 7

    return NEED_MORE


def encode_word(word: str) -> bytes:
    """Encode a word as length prefix plus UTF-8 body."""
    body = word.encode("utf-8")
    return encode_length(len(body)) + body


def encode_sentence(words: Iterable[str]) -> bytes:
    """Encode words followed by the zero-length sentence terminator."""
    return b"".join(encode_word(word) for word in words) + SENTENCE_TERMINATOR


def try_read_word(buffer: bytes | bytearray | memoryview, offset: int = 0) -> tuple[str, int] | None:
    """Read one word from ``buffer`` starting at ``offset``.

    Nothing is consumed unless the length prefix and the whole body are
    present, so a caller receiving ``NEED_MORE`` re-reads the prefix later.

    Args:
        buffer: Received bytes
        offset: Position of the word's length prefix

    Returns:
        ``(word, bytes_consumed)`` including the prefix, or ``NEED_MORE``.
        The sentence terminator decodes as ``("", 1)``.
    """
    decoded = decode_length(buffer, offset)
    if decoded is NEED_MORE:
        return NEED_MORE

    length, prefix_size = decoded
    start = offset + prefix_size
    end = start + length
    if end > len(buffer):
        return NEED_MORE

    # Comments set from Winbox may carry legacy codepage bytes
    word = bytes(buffer[start:end]).decode("utf-8", errors="replace")
    return word, prefix_size + length
