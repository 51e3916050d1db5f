from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field

from .constants import CMD_GET, CMD_QUIT, CRLF, DEFAULT_INBOX_SIZE, ENCODING, REPLY_ERR, REPLY_OK
from .errors import ConnectionClosed, Status, TransferError
from .net import ReadMode, deadline_read, sendn

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Inbox:
    """Fixed-size buffer reused for every control line read on a connection."""

    capacity: int = DEFAULT_INBOX_SIZE
    deadline: float = 0
    buffer: bytearray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.capacity < 2:
            raise ValueError("inbox capacity must leave room for at least one byte and a terminator")
        if self.deadline < 0:
            raise ValueError(f"deadline must be >= 0, got {self.deadline}")
        self.buffer = bytearray(self.capacity)

    def enable_timer(self, seconds: float) -> None:
        if seconds > 0:
            self.deadline = seconds

    def disable_timer(self) -> None:
        self.deadline = 0


@dataclass(frozen=True, slots=True)
class Request:
    command: str
    argument: str = ""

    @property
    def is_get(self) -> bool:
        return self.command == CMD_GET and bool(self.argument)

    @property
    def is_quit(self) -> bool:
        return self.command == CMD_QUIT


def parse_request(line: str) -> Request:
    command, _, argument = line.strip().partition(" ")
    return Request(command=command.upper(), argument=argument.strip())


def send_message(sock: socket.socket, text: str | None = None, filename: str | None = None) -> None:
    """Send a control line.

    With *filename* a ``GET <filename>`` request is composed and terminated;
    otherwise *text* is sent exactly as given.
    """
    if filename is not None:
        line = f"{CMD_GET} {filename}".encode(ENCODING) + CRLF
    elif text is not None:
        line = text.encode(ENCODING)
    else:
        raise ValueError("either text or filename is required")

    try:
        sent = sendn(sock, line)
    except OSError as exc:
        raise TransferError(Status.FILE_IO, f"control line write failed: {exc}") from exc
    if sent != len(line):
        raise TransferError(Status.FILE_IO, f"short control line write: {sent} of {len(line)} bytes")
    logger.debug("sent: %r", line)


def receive_message(sock: socket.socket, inbox: Inbox) -> str:
    """Read one control line into *inbox* and return it without CRLF.

    A line that fills the inbox without a terminator is cut to
    ``capacity - 1`` bytes: the byte in the last slot is dropped and the rest
    of the line stays unread in the stream. A line of exactly
    ``capacity - 1`` characters therefore leaves its LF behind, and the next
    call returns an empty string.
    """
    view = memoryview(inbox.buffer)
    try:
        n = deadline_read(sock, view, inbox.capacity, ReadMode.LINE, inbox.deadline)
    except OSError as exc:
        raise TransferError(Status.FILE_IO, f"control line read failed: {exc}") from exc
    finally:
        view.release()

    if n == 0:
        logger.debug("connection closed by peer on fd %d", sock.fileno())
        raise ConnectionClosed(message="connection closed by peer")
    if n >= inbox.capacity and inbox.buffer[n - 1] != 0x0A:
        n = inbox.capacity - 1

    line = bytes(inbox.buffer[:n]).rstrip(CRLF).decode(ENCODING, errors="replace")
    logger.debug("rcv: %s", line)
    return line


def send_request(sock: socket.socket, filename: str) -> None:
    send_message(sock, filename=filename)


def send_quit(sock: socket.socket) -> None:
    send_message(sock, f"{CMD_QUIT}\r\n")


def send_ok(sock: socket.socket) -> None:
    send_message(sock, f"{REPLY_OK}\r\n")


def send_err(sock: socket.socket) -> None:
    send_message(sock, f"{REPLY_ERR}\r\n")
