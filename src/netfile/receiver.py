from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from .constants import DEFAULT_CHUNK_SIZE, HEADER_FIELD_SIZE
from .errors import ConnectionClosed, IncompleteTransfer, ReadTimeout, Status, TransferError
from .header import FileHeader
from .net import alloc_buffer, deadline_read, recvn
from .session import Session, TransferResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Receiver:
    """Client side of a positive reply: read the header, then store the content.

    Reads never ask for more than the bytes still owed, so whatever the peer
    sends after the content (the next control line) stays in the stream.
    """

    session: Session
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def run(self) -> TransferResult:
        result = TransferResult(status=Status.SUCCESS)
        try:
            self._run(result)
        except TransferError as exc:
            result.status = exc.status
            result.end_ts = time.monotonic()
            self.session.record(result)
            logger.error("receive failed: %s", exc)
            raise
        result.end_ts = time.monotonic()
        return self.session.record(result)

    def _read_field(self, what: str) -> bytes:
        try:
            return recvn(self.session.sock, HEADER_FIELD_SIZE, self.session.deadline)
        except ReadTimeout as exc:
            raise ReadTimeout(message=f"timeout while receiving file {what}") from exc
        except ConnectionClosed as exc:
            raise TransferError(Status.FILE_IO, f"connection closed while receiving file {what}") from exc
        except OSError as exc:
            raise TransferError(Status.FILE_IO, f"error while receiving file {what}: {exc}") from exc

    def _run(self, result: TransferResult) -> None:
        chunk_size = self.chunk_size if self.chunk_size > 0 else DEFAULT_CHUNK_SIZE
        buf = alloc_buffer(chunk_size)
        fp = self.session.fp
        sock = self.session.sock
        if fp is None:
            raise TransferError(Status.FILE_IO, "session has no destination file")

        raw_size = self._read_field("size")
        raw_timestamp = self._read_field("timestamp")
        header = FileHeader.from_bytes(raw_size + raw_timestamp)
        size, timestamp = header.size, header.timestamp
        self.session.size = size
        self.session.timestamp = timestamp
        result.size = size
        result.timestamp = timestamp
        logger.debug("FILE SIZE: %d FILE TIMESTAMP: %d", size, timestamp)

        remaining = size
        with memoryview(buf) as view:
            while remaining > 0:
                try:
                    n = deadline_read(sock, view, min(chunk_size, remaining), deadline=self.session.deadline)
                except ReadTimeout as exc:
                    raise ReadTimeout(message=f"timeout with {remaining} of {size} bytes outstanding") from exc
                except OSError as exc:
                    raise TransferError(Status.FILE_IO, f"read error: {exc}") from exc
                if n == 0:
                    raise IncompleteTransfer(message=f"stream ended with {remaining} of {size} bytes outstanding")

                try:
                    written = fp.write(view[:n])
                except OSError as exc:
                    raise TransferError(Status.FILE_IO, f"error while writing: {exc}") from exc
                if written != n:
                    raise TransferError(Status.FILE_IO, f"short write to file: {written} of {n} bytes")

                remaining -= written
                result.bytes_transferred += written
                result.chunks += 1
                logger.debug("numRecv=%d bytes_left=%d", n, remaining)

        try:
            fp.flush()
        except OSError as exc:
            raise TransferError(Status.FILE_IO, f"flush failed: {exc}") from exc
        logger.info("receive done; %d bytes in %d chunks", result.bytes_transferred, result.chunks)


def receive(session: Session, chunk_size: int = 0) -> TransferResult:
    """Receive one file into the session's file. ``chunk_size <= 0`` means the default."""
    return Receiver(session, chunk_size).run()
