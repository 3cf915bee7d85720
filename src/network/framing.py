"""
Framing of the peer protocol: newline delimited UTF-8 lines.

A line carries at most MAX_LINE_BYTES bytes (terminator excluded). Longer or undecodable lines are protocol errors:
the line is dropped, the connection stays open. A read/write failure on the socket is a transport error.
"""

import logging
import socket
import threading
from contextlib import suppress
from typing import Optional

from src.core.exceptions import ProtocolParseError, TransportError

_LOGGER = logging.getLogger(__name__)

MAX_LINE_BYTES = 64
ENCODING = "utf-8"
TERMINATOR = b"\n"


class LineStream:
    """One end of a TCP connection, read and written one line at a time."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._reader = sock.makefile("rb")
        # whole lines are written under this lock, so lines of different threads never interleave
        self._write_lock = threading.Lock()
        self._closed = False

    @property
    def peer_name(self) -> str:
        try:
            host, port = self._sock.getpeername()[:2]
        except OSError:
            return "<disconnected>"
        return f"{host}:{port}"

    def read_line(self) -> Optional[str]:
        """
        Blocks until a complete line arrived. Returns None once the other side closed the connection.

        Raises ProtocolParseError (line dropped) or TransportError (session over).
        """
        # room for an optional carriage return plus the terminator
        limit = MAX_LINE_BYTES + 2
        try:
            raw = self._reader.readline(limit)
        except (OSError, ValueError) as exc:
            raise TransportError(f"Failed to read from {self.peer_name}: {exc}") from exc

        if not raw:
            return None

        if not raw.endswith(TERMINATOR):
            if len(raw) < limit:
                # connection closed halfway through a line
                _LOGGER.warning("Discarding incomplete line %r", raw)
                return None
            self._skip_rest_of_line()
            raise ProtocolParseError(f"Line exceeds {MAX_LINE_BYTES} bytes")

        content = raw.rstrip(b"\r\n")
        if len(content) > MAX_LINE_BYTES:
            raise ProtocolParseError(f"Line exceeds {MAX_LINE_BYTES} bytes")
        try:
            return content.decode(ENCODING)
        except UnicodeDecodeError as exc:
            raise ProtocolParseError(f"Line is not valid {ENCODING}: {content!r}") from exc

    def _skip_rest_of_line(self) -> None:
        while True:
            try:
                chunk = self._reader.readline(MAX_LINE_BYTES)
            except (OSError, ValueError) as exc:
                raise TransportError(f"Failed to read from {self.peer_name}: {exc}") from exc
            if not chunk or chunk.endswith(TERMINATOR):
                return

    def write_line(self, text: str) -> None:
        payload = text.encode(ENCODING)
        if TERMINATOR in payload or len(payload) > MAX_LINE_BYTES:
            raise ValueError(f"Cannot send {text!r} as a single line")
        try:
            with self._write_lock:
                self._sock.sendall(payload + TERMINATOR)
        except OSError as exc:
            raise TransportError(f"Failed to write to {self.peer_name}: {exc}") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # the other side may already be gone
        with suppress(OSError):
            self._sock.shutdown(socket.SHUT_RDWR)
        self._reader.close()
        self._sock.close()
