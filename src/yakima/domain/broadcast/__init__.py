"""
Broadcast domain.

Icecast source protocol, the broadcast session that owns the server
connection, and the supervisor that streams the playback queue through it.
"""

from .exceptions import (
    BroadcastError,
    DialError,
    ExitCode,
    HandshakeRejectedError,
    NothingPlayableError,
    SessionNotReadyError,
    ShutdownRequested,
    StreamConnectionError,
)
from .protocol import (
    CONTINUE_STATUS,
    FINAL_CHUNK,
    basic_auth,
    build_handshake,
    encode_chunk,
    is_continue_response,
)
from .session import BroadcastSession
from .supervisor import SessionSupervisor, SupervisorState, exit_code_for

__all__ = [
    "CONTINUE_STATUS",
    "FINAL_CHUNK",
    "BroadcastError",
    "BroadcastSession",
    "DialError",
    "ExitCode",
    "HandshakeRejectedError",
    "NothingPlayableError",
    "SessionNotReadyError",
    "SessionSupervisor",
    "ShutdownRequested",
    "StreamConnectionError",
    "SupervisorState",
    "basic_auth",
    "build_handshake",
    "encode_chunk",
    "exit_code_for",
    "is_continue_response",
]
