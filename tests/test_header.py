from __future__ import annotations

import os

import pytest

from netfile.header import FileHeader, decode_field, encode_field


def test_fields_are_big_endian():
    assert encode_field(10) == b"\x00\x00\x00\x0a"
    assert decode_field(b"\x01\x02\x03\x04") == 0x01020304


def test_header_layout():
    h = FileHeader(size=10, timestamp=0x5F5E1000)
    raw = h.to_bytes()
    assert raw == b"\x00\x00\x00\x0a\x5f\x5e\x10\x00"
    assert FileHeader.from_bytes(raw) == h


def test_timestamp_keeps_low_32_bits():
    mtime = (1 << 33) + 12345
    st = os.stat_result((0o100644, 0, 0, 1, 0, 0, 7, mtime, mtime, mtime))
    h = FileHeader.from_stat(st)
    assert h.size == 7
    assert h.timestamp == 12345


def test_size_over_32_bits_rejected():
    with pytest.raises(ValueError):
        FileHeader(size=1 << 32, timestamp=0)


def test_short_header():
    with pytest.raises(ValueError):
        FileHeader.from_bytes(b"\x00" * 7)
