"""Broadcast exceptions and process exit statuses."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit statuses, one per fatal failure category."""

    OK = 0
    DIRECTORY_UNREADABLE = 1
    DIAL_FAILED = 2
    HANDSHAKE_REJECTED = 3
    NOTHING_PLAYABLE = 4
    CONNECTION_LOST = 5
    TRANSCODER_UNAVAILABLE = 6
    CONFIG_INVALID = 7


class BroadcastError(Exception):
    """Base exception for broadcast operations."""

    pass


class DialError(BroadcastError):
    """Raised when the TCP connection to the server cannot be established."""

    def __init__(self, address: str, reason: str = ""):
        self.address = address
        message = f"Couldn't establish connection with Icecast at {address}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class HandshakeRejectedError(BroadcastError):
    """Raised when the server does not answer the request with 100 Continue."""

    def __init__(self, reply: str):
        self.reply = reply
        super().__init__(f"Icecast server refused data transfer: {reply!r}")


class SessionNotReadyError(BroadcastError):
    """Raised when audio is written before the handshake completed."""

    pass


class StreamConnectionError(BroadcastError):
    """Raised when writing to an established session fails."""

    pass


class NothingPlayableError(BroadcastError):
    """Raised when a looping queue holds no track that can be streamed."""

    pass


class ShutdownRequested(Exception):
    """Raised from a signal handler to stop streaming gracefully."""

    def __init__(self, signum: int):
        self.signum = signum
        super().__init__(f"Shutdown requested by signal {signum}")

    @property
    def exit_code(self) -> int:
        return 128 + self.signum
