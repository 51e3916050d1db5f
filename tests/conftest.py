from __future__ import annotations

import socket
import threading

import pytest

from netfile.server import Server


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    try:
        yield a, b
    finally:
        a.close()
        b.close()


@pytest.fixture
def served_dir(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    server = Server.listening("127.0.0.1", 0, root, chunk_size=4)
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    try:
        yield server, root
    finally:
        server.close()
        t.join(timeout=2.0)
