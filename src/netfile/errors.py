from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .session import Session


class Status(enum.IntEnum):
    """Outcome of a netfile operation. Numeric values are stable."""

    SUCCESS = 200
    NO_CONNECTION = 600
    NEGATIVE_RESPONSE = 601
    FILE_STAT = 602
    FILE_IO = 603
    MEMORY_ALLOCATION = 604
    TIMEOUT = 605
    INCOMPLETE_TRANSFER = 606
    UNRECOGNIZED = -1

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def coerce(cls, code: Union["Status", int]) -> "Status":
        try:
            return cls(int(code))
        except (TypeError, ValueError):
            return cls.UNRECOGNIZED


_LABELS = {
    Status.SUCCESS: "DONE",
    Status.NO_CONNECTION: "NO_CONNECTION_ERR",
    Status.NEGATIVE_RESPONSE: "NEGATIVE_RESPONSE_ERR",
    Status.FILE_STAT: "NO_FILE_STAT_ERR",
    Status.FILE_IO: "FILE_IO_ERR",
    Status.MEMORY_ALLOCATION: "MEMORY_ERR",
    Status.TIMEOUT: "TIMEOUT_ERR",
    Status.INCOMPLETE_TRANSFER: "INCOMPLETE_TRANSFER_ERR",
    Status.UNRECOGNIZED: "ERROR_NOT_HANDLED",
}


class TransferError(Exception):
    """A failed netfile operation, carrying the status it ended with."""

    status = Status.UNRECOGNIZED

    def __init__(self, status: Status | None = None, message: str = "") -> None:
        if status is not None:
            self.status = status
        self.message = message
        super().__init__(f"{self.status.label}: {message}" if message else self.status.label)


class ReadTimeout(TransferError):
    """No data became readable before the deadline expired."""

    status = Status.TIMEOUT


class ConnectionClosed(TransferError):
    status = Status.NO_CONNECTION


class NegativeResponse(TransferError):
    status = Status.NEGATIVE_RESPONSE


class IncompleteTransfer(TransferError):
    """Peer closed the stream before the declared size was received."""

    status = Status.INCOMPLETE_TRANSFER


def set_status(session: "Session", code: Union[Status, int]) -> Status:
    status = Status.coerce(code)
    session.status = status
    return status


def get_status(session: "Session") -> str:
    if session.status is None:
        return ""
    return session.status.label


__all__ = [
    "Status",
    "TransferError",
    "ReadTimeout",
    "ConnectionClosed",
    "NegativeResponse",
    "IncompleteTransfer",
    "set_status",
    "get_status",
]
