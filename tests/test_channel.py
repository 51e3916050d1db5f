from __future__ import annotations

import pytest

from netfile.channel import Inbox, parse_request, receive_message, send_message, send_quit
from netfile.errors import ConnectionClosed, ReadTimeout, Status, TransferError


def test_get_request_is_crlf_terminated(pair):
    a, b = pair
    send_message(a, filename="test.txt")
    assert b.recv(64) == b"GET test.txt\r\n"


def test_literal_text_sent_as_is(pair):
    a, b = pair
    send_message(a, "-ERR\r\n")
    assert b.recv(64) == b"-ERR\r\n"


def test_send_message_needs_something(pair):
    a, _ = pair
    with pytest.raises(ValueError):
        send_message(a)


def test_write_to_closed_peer_is_io_error(pair):
    a, b = pair
    b.close()
    with pytest.raises(TransferError) as info:
        send_quit(a)
    assert info.value.status is Status.FILE_IO


def test_receive_strips_crlf_and_reuses_buffer(pair):
    a, b = pair
    inbox = Inbox(64)
    buffer = inbox.buffer
    b.sendall(b"GET a.txt\r\nQUIT\r\n")
    assert receive_message(a, inbox) == "GET a.txt"
    assert receive_message(a, inbox) == "QUIT"
    assert inbox.buffer is buffer
    assert len(inbox.buffer) == 64


def test_long_line_truncated_to_capacity_minus_one(pair):
    a, b = pair
    inbox = Inbox(8)
    b.sendall(b"ABCDEFGHIJKL\r\n")
    assert receive_message(a, inbox) == "ABCDEFG"
    assert len(inbox.buffer) == 8
    assert receive_message(a, inbox) == "IJKL"


def test_closed_and_timeout_are_distinct(pair):
    a, b = pair
    inbox = Inbox(16, deadline=0.1)
    with pytest.raises(ReadTimeout):
        receive_message(a, inbox)
    b.close()
    with pytest.raises(ConnectionClosed) as info:
        receive_message(a, inbox)
    assert info.value.status is Status.NO_CONNECTION


def test_inbox_timer_toggle():
    inbox = Inbox()
    inbox.enable_timer(0)
    assert inbox.deadline == 0
    inbox.enable_timer(2.5)
    assert inbox.deadline == 2.5
    inbox.enable_timer(-1)
    assert inbox.deadline == 2.5
    inbox.disable_timer()
    assert inbox.deadline == 0


def test_inbox_rejects_bad_values():
    with pytest.raises(ValueError):
        Inbox(1)
    with pytest.raises(ValueError):
        Inbox(16, deadline=-1)


@pytest.mark.parametrize(
    "line, command, argument",
    [
        ("GET test.txt", "GET", "test.txt"),
        ("get  spaced name.txt ", "GET", "spaced name.txt"),
        ("QUIT", "QUIT", ""),
        ("HELO x", "HELO", "x"),
    ],
)
def test_parse_request(line, command, argument):
    r = parse_request(line)
    assert (r.command, r.argument) == (command, argument)


def test_get_without_name_is_not_a_get():
    assert not parse_request("GET").is_get
    assert parse_request("quit").is_quit


def test_line_of_capacity_minus_one_leaves_lf_behind(pair):
    a, b = pair
    inbox = Inbox(8)
    b.sendall(b"ABCDEFG\r\nQUIT\r\n")
    assert receive_message(a, inbox) == "ABCDEFG"
    assert receive_message(a, inbox) == ""
    assert receive_message(a, inbox) == "QUIT"
