"""
Icecast source protocol framing.

Builds the PUT request that opens a source stream and frames the audio body
with HTTP chunked transfer encoding.
"""

import base64

CONTINUE_STATUS = "HTTP/1.1 100 Continue"
CRLF = b"\r\n"
FINAL_CHUNK = b"0\r\n\r\n"


def basic_auth(username: str, password: str) -> str:
    """Return the base64 token for an ``Authorization: Basic`` header."""
    credentials = f"{username}:{password}".encode("utf-8")
    return base64.b64encode(credentials).decode("ascii")


def build_handshake(
    host: str,
    port: int,
    username: str,
    password: str,
    mount: str = "/stream.mp3",
    genre: str = "Yakima",
    user_agent: str = "Yakima/1.0",
    public: bool = True,
) -> bytes:
    """Build the request head that asks the server to accept a source stream."""
    lines = [
        f"PUT {mount} HTTP/1.1",
        f"Host: {host}:{port}",
        f"Authorization: Basic {basic_auth(username, password)}",
        f"User-Agent: {user_agent}",
        "Accept: */*",
        "Transfer-Encoding: chunked",
        "Content-Type: audio/mpeg",
        f"Ice-Public: {1 if public else 0}",
        f"Ice-Genre: {genre}",
        "Expect: 100-continue",
    ]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


def is_continue_response(reply: bytes) -> bool:
    """Check whether the server reply contains the 100 Continue status line."""
    return CONTINUE_STATUS in reply.decode("latin-1")


def encode_chunk(data: bytes) -> bytes:
    """Frame data as one chunk: hex length, CRLF, payload, CRLF.

    Raises:
        ValueError: For empty data, which would terminate the body
    """
    if not data:
        raise ValueError("Cannot encode an empty chunk; use FINAL_CHUNK to end the body")
    return f"{len(data):X}".encode("ascii") + CRLF + data + CRLF
