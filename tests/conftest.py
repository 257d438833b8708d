"""Shared pytest fixtures.

Provides a fake Icecast server that accepts source connections on
127.0.0.1 and records the request head and raw body of each one.
"""

import socket
import threading
from dataclasses import dataclass, field
from typing import Iterator

import pytest

from yakima.core.config import IcecastConfig

CONTINUE_REPLY = b"HTTP/1.1 100 Continue\r\n\r\n"


@dataclass
class ReceivedStream:
    """Everything one client sent on one connection."""

    head: bytes = b""
    body: bytearray = field(default_factory=bytearray)
    done: threading.Event = field(default_factory=threading.Event)

    @property
    def request_lines(self) -> list[str]:
        return self.head.decode("utf-8").split("\r\n")


class FakeIcecastServer:
    """Minimal source endpoint: reads the head, sends a reply, drains the body.

    Connections are handled one after another on a background thread.
    """

    def __init__(self, reply: bytes = CONTINUE_REPLY, close_after_reply: bool = False):
        self.reply = reply
        self.close_after_reply = close_after_reply
        self.streams: list[ReceivedStream] = []
        self._accepted = threading.Condition()

        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.listener.bind(("127.0.0.1", 0))
        self.listener.listen(5)
        self.port = self.listener.getsockname()[1]

        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        while True:
            try:
                conn, _ = self.listener.accept()
            except OSError:
                return  # Listener closed

            stream = ReceivedStream()
            with self._accepted:
                self.streams.append(stream)
                self._accepted.notify_all()

            with conn:
                self._handle(conn, stream)
            stream.done.set()

    def _handle(self, conn: socket.socket, stream: ReceivedStream) -> None:
        data = b""
        while b"\r\n\r\n" not in data:
            chunk = conn.recv(4096)
            if not chunk:
                stream.head = data
                return
            data += chunk

        head, _, rest = data.partition(b"\r\n\r\n")
        stream.head = head
        stream.body.extend(rest)

        if self.reply:
            conn.sendall(self.reply)
        if self.close_after_reply:
            return

        while True:
            try:
                chunk = conn.recv(65536)
            except OSError:
                return
            if not chunk:
                return
            stream.body.extend(chunk)

    def wait_for_stream(self, index: int = 0, timeout: float = 5.0) -> ReceivedStream:
        """Wait until connection ``index`` was accepted and closed."""
        with self._accepted:
            self._accepted.wait_for(lambda: len(self.streams) > index, timeout=timeout)
        stream = self.streams[index]
        assert stream.done.wait(timeout), "client never closed the connection"
        return stream

    def close(self) -> None:
        self.listener.close()


def decode_chunked(body: bytes) -> tuple[bytes, bool]:
    """Decode a chunked body.

    Returns:
        (payload, terminated) where terminated tells whether the final
        zero-length chunk was seen
    """
    payload = bytearray()
    position = 0
    while position < len(body):
        line_end = body.index(b"\r\n", position)
        size = int(body[position:line_end], 16)
        position = line_end + 2
        if size == 0:
            assert body[position:position + 2] == b"\r\n"
            return bytes(payload), True
        payload.extend(body[position:position + size])
        position += size
        assert body[position:position + 2] == b"\r\n", "chunk not followed by CRLF"
        position += 2
    return bytes(payload), False


@pytest.fixture
def fake_icecast() -> Iterator[FakeIcecastServer]:
    """Fake Icecast server that accepts every source."""
    server = FakeIcecastServer()
    yield server
    server.close()


@pytest.fixture
def icecast_config(fake_icecast: FakeIcecastServer) -> IcecastConfig:
    """Icecast config pointing at the fake server."""
    return IcecastConfig(
        host="127.0.0.1",
        port=fake_icecast.port,
        username="source",
        password="hackme",
        connect_timeout=2.0,
    )


@pytest.fixture
def closed_port() -> int:
    """A localhost port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
