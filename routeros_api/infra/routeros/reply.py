"""Decoding of assembled RouterOS API replies.

A reply is the run of sentences answering one command. ``!re`` sentences
carry records as ``=key=value`` attribute words, a ``!trap`` sentence
reports a command error, and ``!done`` ends the run.
"""

from dataclasses import dataclass, field

from routeros_api.infra.routeros.sentence import (
    TAG_DONE,
    TAG_FATAL,
    TAG_REPLY,
    TAG_TRAP,
    Sentence,
)

UNKNOWN_ERROR = "Unknown error"


@dataclass
class Reply:
    """Decoded reply to one command.

    Attributes:
        error: Message of the first !trap sentence, None on success
        data: One mapping per non-empty !re sentence, in arrival order
        raw: Every sentence of the reply as received
        category: Category attribute of the first !trap, if present
        done: Attributes of the !done sentence (e.g. ``ret`` after /add)
        fatal: Message of a !fatal sentence, if the device sent one
    """

    error: str | None = None
    data: list[dict[str, str]] = field(default_factory=list)
    raw: list[Sentence] = field(default_factory=list)
    category: str | None = None
    done: dict[str, str] = field(default_factory=dict)
    fatal: str | None = None

    @property
    def ok(self) -> bool:
        """True when the reply carries neither a trap nor a fatal error."""
        return self.error is None and self.fatal is None


def parse_attribute_word(word: str) -> tuple[str, str] | None:
    """Split ``=key=value`` into ``(key, value)``.

    The value is everything after the second ``=`` and may itself contain
    ``=``. Words that do not start with ``=`` or lack the second ``=`` yield
    None.
    """
    if not word.startswith("="):
        return None

    separator = word.find("=", 1)
    if separator == -1:
        return None

    return word[1:separator], word[separator + 1 :]


def parse_attributes(words: list[str]) -> dict[str, str]:
    """Collect the attribute words of a sentence into a mapping, skipping the rest."""
    attributes: dict[str, str] = {}
    for word in words:
        parsed = parse_attribute_word(word)
        if parsed is not None:
            key, value = parsed
            attributes[key] = value
    return attributes


def decode_reply(sentences: list[Sentence]) -> Reply:
    """Convert a completed sentence run into a Reply.

    Args:
        sentences: Sentences of one reply, normally ending in !done

    Returns:
        Decoded reply; only the first !trap is reported as the error
    """
    reply = Reply(raw=[list(sentence) for sentence in sentences])

    for sentence in sentences:
        if not sentence:
            continue

        tag, words = sentence[0], sentence[1:]

        if tag == TAG_REPLY:
            item = parse_attributes(words)
            if item:
                reply.data.append(item)

        elif tag == TAG_TRAP:
            if reply.error is not None:
                continue
            attributes = parse_attributes(words)
            reply.error = attributes.get("message", UNKNOWN_ERROR)
            reply.category = attributes.get("category")

        elif tag == TAG_DONE:
            reply.done = parse_attributes(words)

        elif tag == TAG_FATAL:
            # !fatal carries its reason as a bare word, not an attribute
            reply.fatal = words[0] if words else UNKNOWN_ERROR

    return reply
