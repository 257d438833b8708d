"""
Broadcast session: the single source connection to an Icecast server.

Opens the TCP connection, performs the authenticated PUT handshake and then
acts as an append-only sink that frames every write as one HTTP chunk.
"""

import socket
from typing import Optional

from loguru import logger

from yakima.core.config import IcecastConfig

from .exceptions import (
    DialError,
    HandshakeRejectedError,
    SessionNotReadyError,
    StreamConnectionError,
)
from .protocol import FINAL_CHUNK, build_handshake, encode_chunk, is_continue_response

# Bytes read from the server when looking for the 100 Continue reply
RESPONSE_BUFFER_SIZE = 1024


class BroadcastSession:
    """One authenticated source connection.

    No audio may be written until ``ready`` is True, which only happens after
    the server acknowledged the request head with 100 Continue. The session
    never reconnects on its own; a failed write is reported to the caller.
    """

    def __init__(self, config: IcecastConfig):
        self.config = config
        self.sock: Optional[socket.socket] = None
        self.ready = False
        self.bytes_sent = 0
        # Set while a chunk may be partly on the wire
        self.in_chunk = False

    @classmethod
    def open(cls, config: IcecastConfig) -> "BroadcastSession":
        """Dial the server and complete the handshake.

        Raises:
            DialError: If the connection cannot be established
            HandshakeRejectedError: If the server does not reply 100 Continue
        """
        session = cls(config)
        session.connect()
        return session

    def connect(self) -> None:
        address = self.config.address
        logger.info(f"Connecting to Icecast at {address}")

        try:
            self.sock = socket.create_connection(
                (self.config.host, self.config.port),
                timeout=self.config.connect_timeout,
            )
        except OSError as e:
            raise DialError(address, str(e)) from e

        try:
            self._handshake()
        except BaseException:
            self.close(graceful=False)
            raise

        logger.info(f"Icecast accepted source stream on {self.config.mount}")

    def _handshake(self) -> None:
        assert self.sock is not None
        request = build_handshake(
            host=self.config.host,
            port=self.config.port,
            username=self.config.username,
            password=self.config.password,
            mount=self.config.mount,
            genre=self.config.genre,
            user_agent=self.config.user_agent,
            public=self.config.public,
        )

        try:
            self.sock.sendall(request)
            reply = self.sock.recv(RESPONSE_BUFFER_SIZE)
        except socket.timeout:
            raise HandshakeRejectedError("") from None
        except OSError as e:
            raise HandshakeRejectedError(str(e)) from e

        if not is_continue_response(reply):
            raise HandshakeRejectedError(reply.decode("latin-1"))

        # Writes pace with the transcoder from here on; no socket timeout
        self.sock.settimeout(None)
        self.ready = True

    def write(self, data: bytes) -> int:
        """Send data to the server as one chunk.

        Empty data is ignored since a zero-length chunk ends the body.

        Returns:
            Number of payload bytes written

        Raises:
            SessionNotReadyError: If the handshake has not completed
            StreamConnectionError: If the socket write fails
        """
        if not self.ready or self.sock is None:
            raise SessionNotReadyError("Broadcast session is not ready for audio")

        if not data:
            return 0

        self.in_chunk = True
        try:
            self.sock.sendall(encode_chunk(data))
        except OSError as e:
            self.ready = False
            raise StreamConnectionError(f"Lost connection to Icecast: {e}") from e
        self.in_chunk = False

        self.bytes_sent += len(data)
        return len(data)

    def close(self, graceful: bool = True) -> None:
        """Close the connection.

        Args:
            graceful: Send the terminating zero-length chunk first so the
                server can finalize the stream. Skipped when a write was
                interrupted mid-chunk.
        """
        if self.sock is None:
            return

        if graceful and self.ready and not self.in_chunk:
            try:
                self.sock.sendall(FINAL_CHUNK)
            except OSError as e:
                logger.warning(f"Could not send final chunk: {e}")

        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone
        self.sock.close()

        self.sock = None
        self.ready = False
        logger.info(f"Closed Icecast connection ({self.bytes_sent} bytes sent)")

    def __enter__(self) -> "BroadcastSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close(graceful=exc_type is None)
