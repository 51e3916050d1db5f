"""netfile: minimal GET-style file transfer over a byte stream.

The package is split the way the protocol is layered:
- control-line framing (channel) vs. bulk content (sender / receiver)
- one deadline-bound read that every receive path goes through
- per-session state and a closed set of status codes

Wire format (all integers big-endian):

    client --> GET <filename>\\r\\n | QUIT\\r\\n
    server --> +OK\\r\\n size:uint32 timestamp:uint32 bytes[size]
               or -ERR\\r\\n
"""

from .channel import Inbox, receive_message, send_message
from .errors import Status, TransferError, get_status, set_status
from .receiver import receive
from .sender import transmit
from .session import Session

__all__ = [
    "Inbox",
    "Session",
    "Status",
    "TransferError",
    "get_status",
    "receive",
    "receive_message",
    "send_message",
    "set_status",
    "transmit",
]
