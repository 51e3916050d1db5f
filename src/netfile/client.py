from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from typing import BinaryIO

from .channel import Inbox, receive_message, send_quit, send_request
from .constants import DEFAULT_CHUNK_SIZE, DEFAULT_INBOX_SIZE, REPLY_ERR, REPLY_OK
from .errors import NegativeResponse, Status, TransferError, set_status
from .receiver import receive
from .session import Session, TransferResult

logger = logging.getLogger(__name__)


def fetch(session: Session, inbox: Inbox, filename: str, chunk_size: int = 0) -> TransferResult:
    """Request *filename* and store it in ``session.fp``.

    A ``-ERR`` reply raises NegativeResponse; no header is read after it.
    """
    try:
        send_request(session.sock, filename)
        reply = receive_message(session.sock, inbox)
    except TransferError as exc:
        set_status(session, exc.status)
        raise
    if reply == REPLY_ERR:
        set_status(session, Status.NEGATIVE_RESPONSE)
        raise NegativeResponse(message=f"server refused {filename!r}")
    if reply != REPLY_OK:
        set_status(session, Status.UNRECOGNIZED)
        raise TransferError(Status.UNRECOGNIZED, f"unexpected reply {reply!r}")
    return receive(session, chunk_size)


@dataclass
class Client:
    """One connection to a netfile server; files are requested one at a time."""

    sock: socket.socket
    chunk_size: int = DEFAULT_CHUNK_SIZE
    deadline: float = 0
    inbox: Inbox = field(default_factory=Inbox)

    @classmethod
    def connect(
        cls,
        host: str,
        port: int,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        deadline: float = 0,
        inbox_size: int = DEFAULT_INBOX_SIZE,
        connect_timeout: float | None = None,
    ) -> "Client":
        sock = socket.create_connection((host, port), timeout=connect_timeout)
        # reads are bounded by select(), not by a socket timeout
        sock.settimeout(None)
        return cls(sock, chunk_size=chunk_size, deadline=deadline, inbox=Inbox(inbox_size, deadline))

    def get(self, filename: str, fp: BinaryIO) -> TransferResult:
        """Fetch one file into *fp*. Raises TransferError on any failure."""
        with Session(self.sock, fp, deadline=self.deadline) as session:
            result = fetch(session, self.inbox, filename, self.chunk_size)
        logger.info("received %s (%d bytes, %.2f Mbit/s)", filename, result.size, result.throughput_mbps)
        return result

    def quit(self) -> None:
        send_quit(self.sock)

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
