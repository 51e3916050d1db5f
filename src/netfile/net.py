from __future__ import annotations

import enum
import logging
import select
import socket
import time

from .errors import ConnectionClosed, ReadTimeout, Status, TransferError

logger = logging.getLogger(__name__)


class ReadMode(enum.Enum):
    RAW = "raw"
    LINE = "line"


def sendn(sock: socket.socket, data: bytes) -> int:
    """Write all of *data* or raise OSError. Returns the number of bytes written."""
    view = memoryview(data)
    total = 0
    while total < len(view):
        sent = sock.send(view[total:])
        if sent <= 0:
            raise OSError(f"short write: {total} of {len(view)} bytes")
        total += sent
    return total


def readline_unbuffered(sock: socket.socket, buf: memoryview, nbytes: int, deadline: float = 0) -> int:
    """Read one byte at a time into *buf* until LF or *nbytes* bytes.

    Reads byte by byte so that nothing past the line terminator is consumed;
    binary content may follow a control line on the same stream.
    With ``deadline > 0`` the whole line must arrive within that many seconds,
    otherwise ReadTimeout is raised.
    Returns the number of bytes stored (LF included), 0 on immediate EOF.
    """
    expiry = time.monotonic() + deadline if deadline > 0 else None
    count = 0
    while count < nbytes:
        if expiry is not None and not wait_readable(sock, max(0.0, expiry - time.monotonic())):
            logger.debug("line incomplete after %.3fs on fd %d (%d bytes)", deadline, sock.fileno(), count)
            raise ReadTimeout(message=f"line incomplete within {deadline}s")
        got = sock.recv_into(buf[count : count + 1], 1)
        if got == 0:
            break
        count += 1
        if buf[count - 1] == 0x0A:
            break
    return count


def wait_readable(sock: socket.socket, timeout: float) -> bool:
    readable, _, _ = select.select([sock], [], [], timeout)
    return bool(readable)


def deadline_read(
    sock: socket.socket,
    buf: memoryview,
    nbytes: int,
    mode: ReadMode = ReadMode.RAW,
    deadline: float = 0,
) -> int:
    """Receive up to *nbytes* into *buf*, waiting at most *deadline* seconds.

    With ``deadline == 0`` this is a plain blocking read. Otherwise the socket
    is first polled for readiness; if nothing arrives in time ReadTimeout is
    raised and no read is attempted. In line mode the deadline bounds the
    whole line, not just its first byte. Every receive path in netfile goes
    through here.
    """
    if deadline < 0:
        raise ValueError(f"deadline must be >= 0, got {deadline}")
    if mode is ReadMode.LINE:
        return readline_unbuffered(sock, buf, nbytes, deadline)
    if deadline > 0 and not wait_readable(sock, deadline):
        logger.debug("no data within %.3fs on fd %d", deadline, sock.fileno())
        raise ReadTimeout(message=f"no data within {deadline}s")
    return sock.recv_into(buf, nbytes)


def alloc_buffer(size: int) -> bytearray:
    """Scratch buffer for one bulk transfer; allocation failure aborts before any I/O."""
    try:
        return bytearray(size)
    except MemoryError as exc:
        raise TransferError(Status.MEMORY_ALLOCATION, f"cannot allocate {size} byte buffer") from exc


def recvn(sock: socket.socket, n: int, deadline: float = 0) -> bytes:
    """Read exactly *n* bytes, each read bounded by *deadline*.

    Raises ConnectionClosed if the peer closes first; ReadTimeout and OSError
    propagate.
    """
    buf = bytearray(n)
    got = 0
    with memoryview(buf) as view:
        while got < n:
            k = deadline_read(sock, view[got:], n - got, deadline=deadline)
            if k == 0:
                raise ConnectionClosed(message=f"connection closed after {got} of {n} bytes")
            got += k
    return bytes(buf)
