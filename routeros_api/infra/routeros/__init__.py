"""RouterOS API integration module.

Implements the RouterOS binary API (TCP 8728 / TLS 8729):
- wire: word length varints and word framing
- sentence: sentence and reply assembly over the inbound stream
- reply: decoding of !re/!trap/!done runs
- api_client: connection state machine, login and command exchange
- exceptions: Strongly-typed error handling
"""

from routeros_api.infra.routeros.api_client import (
    ConnectionState,
    RouterOSApiClient,
    RouterOSApiProtocol,
)
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
from routeros_api.infra.routeros.reply import Reply, decode_reply, parse_attribute_word
from routeros_api.infra.routeros.sentence import SentenceAssembler
from routeros_api.infra.routeros.wire import (
    NEED_MORE,
    decode_length,
    encode_length,
    encode_sentence,
    encode_word,
    try_read_word,
)

__all__ = [
    # Client
    "ConnectionState",
    "EventEmitter",
    "RouterOSApiClient",
    "RouterOSApiProtocol",
    # Protocol
    "NEED_MORE",
    "Reply",
    "SentenceAssembler",
    "decode_length",
    "decode_reply",
    "encode_length",
    "encode_sentence",
    "encode_word",
    "parse_attribute_word",
    "try_read_word",
    # Exceptions
    "RouterOSError",
    "RouterOSConnectionError",
    "RouterOSTimeoutError",
    "RouterOSNetworkError",
    "RouterOSNotConnectedError",
    "RouterOSProtocolError",
    "RouterOSFatalError",
    "RouterOSTrapError",
    "RouterOSLoginError",
    "RouterOSCommandInFlightError",
]
