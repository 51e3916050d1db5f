from __future__ import annotations

import contextlib
import logging
import os
import socket
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from .channel import Inbox, parse_request, receive_message, send_err, send_ok
from .constants import DEFAULT_CHUNK_SIZE, DEFAULT_INBOX_SIZE
from .errors import ConnectionClosed, TransferError
from .header import FileHeader
from .sender import transmit
from .session import Session

logger = logging.getLogger(__name__)


@dataclass
class Server:
    """Serves files below ``root_dir``, one thread and one Session per connection."""

    root_dir: Path
    chunk_size: int = DEFAULT_CHUNK_SIZE
    deadline: float = 0
    inbox_size: int = DEFAULT_INBOX_SIZE
    sock: socket.socket | None = None
    _threads: List[threading.Thread] = field(default_factory=list, repr=False)
    _closed: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def listening(cls, host: str, port: int, root_dir: Path, **kwargs) -> "Server":
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen()
        return cls(root_dir=Path(root_dir), sock=sock, **kwargs)

    @property
    def address(self) -> Tuple[str, int]:
        if self.sock is None:
            raise RuntimeError("server is not listening")
        return self.sock.getsockname()[:2]

    def resolve(self, name: str) -> Path | None:
        """Map a requested name to a regular file inside the root, or None."""
        root = Path(self.root_dir).resolve()
        try:
            path = (root / name).resolve()
        except (OSError, RuntimeError, ValueError):
            return None
        if not path.is_relative_to(root) or not path.is_file():
            return None
        return path

    def serve_connection(self, sock: socket.socket) -> int:
        """Answer requests on one connection until QUIT or EOF. Returns files sent.

        A failed transfer leaves the stream out of sync, so its TransferError
        propagates and the connection must be dropped.
        """
        inbox = Inbox(self.inbox_size, self.deadline)
        served = 0
        while True:
            try:
                line = receive_message(sock, inbox)
            except ConnectionClosed:
                logger.debug("client went away without QUIT")
                break

            request = parse_request(line)
            if request.is_quit:
                break
            if not request.is_get:
                logger.warning("unrecognized request %r", line)
                send_err(sock)
                continue

            path = self.resolve(request.argument)
            if path is None:
                logger.warning("refusing %r", request.argument)
                send_err(sock)
                continue
            try:
                fp = open(path, "rb")
            except OSError as exc:
                logger.warning("cannot open %s: %s", path, exc)
                send_err(sock)
                continue

            with fp:
                # a file whose header cannot be built is refused before +OK
                try:
                    header = FileHeader.from_stat(os.fstat(fp.fileno()))
                except (OSError, ValueError) as exc:
                    logger.warning("cannot send %s: %s", path, exc)
                    send_err(sock)
                    continue
                logger.debug("replying +OK for %s (%d bytes)", path, header.size)
                with Session(sock, fp, deadline=self.deadline) as session:
                    send_ok(sock)
                    result = transmit(session, self.chunk_size)
            served += 1
            logger.info("sent %s (%d bytes, %.3fs)", request.argument, result.size, result.duration_s)
        return served

    def _handle(self, conn: socket.socket, addr) -> None:
        logger.info("connection from %s:%s", *addr[:2])
        try:
            self.serve_connection(conn)
        except TransferError as exc:
            logger.error("session with %s:%s ended: %s", addr[0], addr[1], exc)
        except OSError as exc:
            logger.error("socket error with %s:%s: %s", addr[0], addr[1], exc)
        finally:
            conn.close()
            logger.info("connection from %s:%s closed", *addr[:2])

    def serve_forever(self) -> None:
        if self.sock is None:
            raise RuntimeError("server is not listening")
        logger.info("serving %s on %s:%s", self.root_dir, *self.address)
        while not self._closed.is_set():
            try:
                conn, addr = self.sock.accept()
            except OSError:
                if self._closed.is_set():
                    break
                raise
            self._threads = [t for t in self._threads if t.is_alive()]
            t = threading.Thread(target=self._handle, args=(conn, addr), daemon=True)
            self._threads.append(t)
            t.start()

    def close(self) -> None:
        self._closed.set()
        if self.sock is not None:
            # wakes a thread blocked in accept()
            with contextlib.suppress(OSError):
                self.sock.shutdown(socket.SHUT_RDWR)
            self.sock.close()
        for t in self._threads:
            t.join(timeout=1.0)
