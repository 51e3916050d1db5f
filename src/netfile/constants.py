from __future__ import annotations

ENCODING = "utf-8"
CRLF = b"\r\n"

CMD_GET = "GET"
CMD_QUIT = "QUIT"
REPLY_OK = "+OK"
REPLY_ERR = "-ERR"

HEADER_FIELD_FORMAT = "!I"  # one uint32, network order
HEADER_FIELD_SIZE = 4
UINT32_MAX = 0xFFFFFFFF

DEFAULT_CHUNK_SIZE = 8192
DEFAULT_INBOX_SIZE = 256  # control lines are short
DEFAULT_PORT = 2121
