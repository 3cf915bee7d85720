"""
Client end of a network game.

A background thread reads the connection and drops every received move into a mailbox.
The Game polls that mailbox without ever blocking on the socket.
"""

import logging
import socket
import threading
import time
from collections import deque
from typing import Optional, Self

from src.chess.pieces import Color
from src.core.exceptions import ProtocolParseError, TransportError
from src.network.framing import LineStream
from src.network.notation import END_MESSAGE, START_MESSAGE, is_move_text
from src.network.server import DEFAULT_HOST, DEFAULT_PORT

_LOGGER = logging.getLogger(__name__)

CONNECT_ATTEMPTS = 5
RETRY_DELAY_SECONDS = 0.2
CONNECT_TIMEOUT_SECONDS = 5.0

COLOR_MESSAGES = {"w": Color.WHITE, "b": Color.BLACK}


class PeerClient:
    def __init__(self, stream: LineStream, color: Color) -> None:
        self.color = color
        self._stream = stream

        # moves received but not yet played, oldest first
        self._mailbox: deque[str] = deque()
        self._mailbox_lock = threading.Lock()
        self._started = threading.Event()
        self._ended = threading.Event()
        self._reader_thread: Optional[threading.Thread] = None

    @classmethod
    def connect(
        cls,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        attempts: int = CONNECT_ATTEMPTS,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ) -> Self:
        """Connect to the game server and learn which color we play. Raises TransportError."""
        sock = _connect_with_retries(host, port, attempts, retry_delay)
        stream = LineStream(sock)
        try:
            color = _read_color(stream)
        except (TransportError, ProtocolParseError):
            stream.close()
            raise

        _LOGGER.info("Connected to %s:%s, playing %s", host, port, color.name.lower())
        client = cls(stream, color)
        client.start()
        return client

    # --- READ LOOP ---
    def start(self) -> None:
        self._reader_thread = threading.Thread(
            target=self._read_loop, name="peer-client-reader", daemon=True
        )
        self._reader_thread.start()

    def _read_loop(self) -> None:
        try:
            while True:
                try:
                    line = self._stream.read_line()
                except ProtocolParseError as exc:
                    _LOGGER.warning("Dropping message: %s", exc)
                    continue
                if line is None:
                    _LOGGER.info("Server closed the connection")
                    break
                if not self._handle_line(line):
                    break
        except TransportError as exc:
            _LOGGER.error("Connection lost: %s", exc)
        finally:
            self._ended.set()

    def _handle_line(self, line: str) -> bool:
        """Returns False once the session is over"""
        if line == START_MESSAGE:
            _LOGGER.info("Game started")
            self._started.set()
        elif line == END_MESSAGE:
            _LOGGER.info("Game ended by the other opponent")
            return False
        elif is_move_text(line):
            with self._mailbox_lock:
                self._mailbox.append(line)
        elif line:
            _LOGGER.warning("Dropping unexpected message: %r", line)
        return True

    # --- GAME FACING API ---
    @property
    def is_started(self) -> bool:
        return self._started.is_set()

    @property
    def is_ended(self) -> bool:
        return self._ended.is_set()

    def wait_for_start(self, timeout: Optional[float] = None) -> bool:
        return self._started.wait(timeout)

    def send_move(self, move_text: str) -> None:
        self._stream.write_line(move_text)

    def poll_move(self) -> Optional[str]:
        with self._mailbox_lock:
            if self._mailbox:
                return self._mailbox.popleft()
        if self._ended.is_set():
            raise TransportError("Session with the opponent is over")
        return None

    def send_end(self) -> None:
        """Tell the other side we leave, then hang up"""
        try:
            self._stream.write_line(END_MESSAGE)
        finally:
            self.close()

    def close(self) -> None:
        self._stream.close()
        if self._reader_thread is not None:
            self._reader_thread.join(timeout=1.0)


def _connect_with_retries(
    host: str, port: int, attempts: int, retry_delay: float
) -> socket.socket:
    for attempt in range(1, attempts + 1):
        _LOGGER.debug("Connection attempt %s to %s:%s", attempt, host, port)
        try:
            sock = socket.create_connection((host, port), timeout=CONNECT_TIMEOUT_SECONDS)
        except OSError as exc:
            _LOGGER.error("Failed connection attempt %s to %s:%s: %s", attempt, host, port, exc)
            if attempt < attempts:
                time.sleep(retry_delay)
            continue
        # the read loop blocks without timeout
        sock.settimeout(None)
        return sock
    raise TransportError(f"Failed to connect to {host}:{port} after {attempts} attempts")


def _read_color(stream: LineStream) -> Color:
    line = stream.read_line()
    if line is None:
        raise TransportError("Connection closed before a color was assigned")
    if line not in COLOR_MESSAGES:
        raise ProtocolParseError(f"Failed to get color from stream: {line!r}")
    return COLOR_MESSAGES[line]
