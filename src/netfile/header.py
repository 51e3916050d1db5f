from __future__ import annotations

import os
import struct
from dataclasses import dataclass

from .constants import HEADER_FIELD_FORMAT, HEADER_FIELD_SIZE, UINT32_MAX

_FIELD = struct.Struct(HEADER_FIELD_FORMAT)


def encode_field(value: int) -> bytes:
    return _FIELD.pack(value)


def decode_field(raw: bytes) -> int:
    if len(raw) != HEADER_FIELD_SIZE:
        raise ValueError(f"header field must be {HEADER_FIELD_SIZE} bytes, got {len(raw)}")
    (value,) = _FIELD.unpack(raw)
    return value


@dataclass(frozen=True, slots=True)
class FileHeader:
    """Binary preamble of a positive reply: size then timestamp, uint32 each.

    Sizes above 4 GiB - 1 cannot be represented and are rejected. Timestamps
    keep only the low 32 bits of the epoch seconds.
    """

    size: int
    timestamp: int

    def __post_init__(self) -> None:
        if not 0 <= self.size <= UINT32_MAX:
            raise ValueError(f"file size {self.size} does not fit in 32 bits")
        if not 0 <= self.timestamp <= UINT32_MAX:
            raise ValueError(f"timestamp {self.timestamp} does not fit in 32 bits")

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileHeader":
        return cls(size=st.st_size, timestamp=int(st.st_mtime) & UINT32_MAX)

    def to_bytes(self) -> bytes:
        return encode_field(self.size) + encode_field(self.timestamp)

    @staticmethod
    def from_bytes(raw: bytes) -> "FileHeader":
        if len(raw) != 2 * HEADER_FIELD_SIZE:
            raise ValueError("file header must be exactly 8 bytes")
        return FileHeader(
            size=decode_field(raw[:HEADER_FIELD_SIZE]),
            timestamp=decode_field(raw[HEADER_FIELD_SIZE:]),
        )
