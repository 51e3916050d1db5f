from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass

from .constants import DEFAULT_CHUNK_SIZE
from .errors import Status, TransferError
from .header import FileHeader
from .net import alloc_buffer, sendn
from .session import Session, TransferResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Transmitter:
    """Server side of a positive reply: header, then the file in chunks."""

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
            logger.error("transmit failed: %s", exc)
            raise
        result.end_ts = time.monotonic()
        return self.session.record(result)

    def _run(self, result: TransferResult) -> None:
        chunk_size = self.chunk_size if self.chunk_size > 0 else DEFAULT_CHUNK_SIZE
        buf = alloc_buffer(chunk_size)
        fp = self.session.fp
        sock = self.session.sock
        if fp is None:
            raise TransferError(Status.FILE_STAT, "session has no file to send")

        try:
            header = FileHeader.from_stat(os.fstat(fp.fileno()))
        except (OSError, ValueError) as exc:
            raise TransferError(Status.FILE_STAT, f"cannot stat file: {exc}") from exc
        result.size = header.size
        result.timestamp = header.timestamp

        try:
            sendn(sock, header.to_bytes())
        except OSError as exc:
            raise TransferError(Status.FILE_IO, f"header write failed: {exc}") from exc
        logger.debug("header sent; size=%d timestamp=%d", header.size, header.timestamp)

        remaining = header.size
        offset = 0
        with memoryview(buf) as view:
            while remaining > 0:
                want = min(chunk_size, remaining)
                try:
                    fp.seek(offset, os.SEEK_SET)
                    got = fp.readinto(view[:want])
                except OSError as exc:
                    raise TransferError(Status.FILE_IO, f"file read failed at offset {offset}: {exc}") from exc
                if not got:
                    raise TransferError(Status.FILE_IO, f"file ended at offset {offset}, {remaining} bytes short")

                try:
                    sent = sendn(sock, view[:got])
                except OSError as exc:
                    raise TransferError(Status.FILE_IO, f"content write failed at offset {offset}: {exc}") from exc
                if sent != got:
                    raise TransferError(Status.FILE_IO, f"short content write: {sent} of {got} bytes")

                remaining -= sent
                offset += sent
                result.bytes_transferred += sent
                result.chunks += 1
                logger.debug("sent chunk of %d bytes; bytes_left=%d", sent, remaining)

        logger.info("transmit done; %d bytes in %d chunks", result.bytes_transferred, result.chunks)


def transmit(session: Session, chunk_size: int = 0) -> TransferResult:
    """Send the session's file on its stream. ``chunk_size <= 0`` means the default."""
    return Transmitter(session, chunk_size).run()
