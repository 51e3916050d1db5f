from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass, field
from typing import BinaryIO

from .errors import Status

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransferResult:
    status: Status
    size: int = 0
    timestamp: int = 0
    bytes_transferred: int = 0
    chunks: int = 0
    start_ts: float = field(default_factory=time.monotonic)
    end_ts: float | None = None

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)

    @property
    def throughput_mbps(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return (self.bytes_transferred * 8 / 1_000_000) / self.duration_s


@dataclass(slots=True)
class Session:
    """Binds one connected stream to one file for a transfer.

    ``size`` and ``timestamp`` stay ``None`` until a header has been received
    and are replaced together by the next successful header. ``deadline`` is
    0 (wait forever) or a positive number of seconds applied to every read.
    The stream and the file are owned by the caller; close() does not close
    them.
    """

    sock: socket.socket
    fp: BinaryIO | None = None
    deadline: float = 0
    status: Status | None = None
    size: int | None = None
    timestamp: int | None = None
    last_result: TransferResult | None = None
    closed: bool = False

    def __post_init__(self) -> None:
        if self.deadline < 0:
            raise ValueError(f"deadline must be >= 0, got {self.deadline}")

    def enable_timer(self, seconds: float) -> None:
        if seconds > 0:
            self.deadline = seconds

    def disable_timer(self) -> None:
        self.deadline = 0

    def record(self, result: TransferResult) -> TransferResult:
        self.last_result = result
        self.status = result.status
        return result

    def close(self) -> None:
        if not self.closed:
            logger.debug("session closed; status=%s", self.status.label if self.status else "")
        self.closed = True
        self.fp = None

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
