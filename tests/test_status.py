from __future__ import annotations

import socket

import pytest

from netfile.errors import NegativeResponse, ReadTimeout, Status, TransferError, get_status, set_status
from netfile.session import Session, TransferResult


@pytest.fixture
def session(pair):
    a, _ = pair
    return Session(a)


@pytest.mark.parametrize(
    "code, label",
    [
        (Status.NO_CONNECTION, "NO_CONNECTION_ERR"),
        (Status.NEGATIVE_RESPONSE, "NEGATIVE_RESPONSE_ERR"),
        (Status.FILE_STAT, "NO_FILE_STAT_ERR"),
        (Status.FILE_IO, "FILE_IO_ERR"),
        (Status.SUCCESS, "DONE"),
        (Status.MEMORY_ALLOCATION, "MEMORY_ERR"),
        (Status.TIMEOUT, "TIMEOUT_ERR"),
        (Status.INCOMPLETE_TRANSFER, "INCOMPLETE_TRANSFER_ERR"),
        (603, "FILE_IO_ERR"),
        (999, "ERROR_NOT_HANDLED"),
    ],
)
def test_labels(session, code, label):
    set_status(session, code)
    assert get_status(session) == label


def test_empty_before_any_operation(session):
    assert get_status(session) == ""


def test_status_is_replaced(session):
    set_status(session, Status.TIMEOUT)
    set_status(session, Status.SUCCESS)
    assert get_status(session) == "DONE"


def test_errors_carry_status():
    assert ReadTimeout(message="x").status is Status.TIMEOUT
    assert NegativeResponse().status is Status.NEGATIVE_RESPONSE
    exc = TransferError(Status.FILE_IO, "disk full")
    assert str(exc) == "FILE_IO_ERR: disk full"
    assert exc.message == "disk full"


def test_session_timer(session):
    session.enable_timer(3)
    assert session.deadline == 3
    session.enable_timer(0)
    assert session.deadline == 3
    session.disable_timer()
    assert session.deadline == 0


def test_session_rejects_negative_deadline():
    a, b = socket.socketpair()
    try:
        with pytest.raises(ValueError):
            Session(a, deadline=-1)
    finally:
        a.close()
        b.close()


def test_close_keeps_transfer_facts(session):
    session.record(TransferResult(status=Status.SUCCESS, size=5, timestamp=1))
    with session:
        pass
    assert session.closed
    assert session.fp is None
    assert get_status(session) == "DONE"
    assert session.last_result.size == 5
