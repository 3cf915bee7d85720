"""
Relay server for a network game.

The player hosting the game runs this server and connects to it like any other client.
Every line a client sends is relayed to every other connected peer. The server itself never looks at the board.

Session protocol (one message per line):
* "w" / "b"  server --> client: the color the client plays. The first client (the host) gets the configured color.
* "s"        server --> all: both players are connected, the game starts.
* "e2e4"     client --> server --> others: a move.
* "ended"    client --> server --> others: the game was ended by a player.
"""

import logging
import socket
import threading
from typing import Optional

from src.chess.pieces import Color
from src.core.exceptions import ProtocolParseError, TransportError
from src.network.framing import LineStream
from src.network.notation import START_MESSAGE

_LOGGER = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2308
PLAYERS_PER_GAME = 2
ACCEPT_POLL_SECONDS = 0.2

PeerAddress = tuple[str, int]


class GameServer:
    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        host_color: Color = Color.WHITE,
    ) -> None:
        self.host = host
        self.port = port
        self.host_color = host_color

        # roster of active peers. Only mutated / copied while holding the lock, never used for I/O under it.
        self._peers: dict[PeerAddress, LineStream] = {}
        self._seats_handed_out = 0
        self._players_seated = 0
        self._roster_lock = threading.Lock()

        self._listener: Optional[socket.socket] = None
        self._accept_thread: Optional[threading.Thread] = None
        self._connection_threads: list[threading.Thread] = []
        self._stopping = threading.Event()

    @property
    def address(self) -> PeerAddress:
        """Address actually bound (relevant when started on port 0)"""
        if self._listener is None:
            return (self.host, self.port)
        host, port = self._listener.getsockname()[:2]
        return (host, port)

    @property
    def peer_count(self) -> int:
        with self._roster_lock:
            return len(self._peers)

    def start(self) -> None:
        """Bind the listening endpoint and accept clients on a background thread.
        Failing to bind is fatal: raises TransportError."""
        try:
            listener = socket.create_server((self.host, self.port))
        except OSError as exc:
            raise TransportError(
                f"Cannot listen on {self.host}:{self.port}: {exc}"
            ) from exc

        # the accept loop wakes up regularly to notice a stop request
        listener.settimeout(ACCEPT_POLL_SECONDS)
        self._listener = listener
        self._accept_thread = threading.Thread(
            target=self._accept_loop, name="game-server-accept", daemon=True
        )
        self._accept_thread.start()
        _LOGGER.info("Server is running on %s:%s", *self.address)

    def stop(self) -> None:
        self._stopping.set()
        if self._listener is not None:
            self._listener.close()

        with self._roster_lock:
            streams = list(self._peers.values())
            self._peers.clear()
        for stream in streams:
            stream.close()

        if self._accept_thread is not None:
            self._accept_thread.join(timeout=1.0)
        for thread in self._connection_threads:
            thread.join(timeout=1.0)
        _LOGGER.info("Server stopped")

    def __enter__(self) -> "GameServer":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # --- CONNECTIONS ---
    def _accept_loop(self) -> None:
        assert self._listener is not None
        while not self._stopping.is_set():
            try:
                sock, address = self._listener.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if not self._stopping.is_set():
                    _LOGGER.error("Failed to accept connection: %s", exc)
                break

            _LOGGER.info("New connection from %s:%s", *address[:2])
            thread = threading.Thread(
                target=self._handle_connection,
                args=(LineStream(sock), address[:2]),
                name=f"game-server-peer-{address[1]}",
                daemon=True,
            )
            self._connection_threads = [
                running for running in self._connection_threads if running.is_alive()
            ]
            self._connection_threads.append(thread)
            thread.start()

    def _handle_connection(self, stream: LineStream, address: PeerAddress) -> None:
        """Seat the peer, then relay everything it sends until it leaves."""
        try:
            self._register(stream, address)
            while not self._stopping.is_set():
                try:
                    line = stream.read_line()
                except ProtocolParseError as exc:
                    _LOGGER.warning("Dropping message from %s:%s: %s", *address, exc)
                    continue
                if line is None:
                    break
                if not line:
                    continue
                self.broadcast(line, sender=address)
        except TransportError as exc:
            _LOGGER.error("Connection with %s:%s failed: %s", *address, exc)
        finally:
            self._unregister(address)
            stream.close()
            _LOGGER.info("Peer %s:%s left", *address)

    def _register(self, stream: LineStream, address: PeerAddress) -> None:
        with self._roster_lock:
            seat = self._seats_handed_out
            self._seats_handed_out += 1

        is_player = seat < PLAYERS_PER_GAME
        # the color goes out before the peer is on the roster: it is always the first line a player receives
        if is_player:
            color = self.host_color if seat == 0 else self.host_color.opposite
            stream.write_line(color.to_fen())
            _LOGGER.info("Peer %s:%s plays %s", *address, color.name.lower())
        else:
            _LOGGER.info("Peer %s:%s joined as spectator", *address)

        with self._roster_lock:
            self._peers[address] = stream
            if is_player:
                self._players_seated += 1
            game_ready = is_player and self._players_seated == PLAYERS_PER_GAME

        if game_ready:
            self.broadcast(START_MESSAGE)

    def _unregister(self, address: PeerAddress) -> None:
        with self._roster_lock:
            stream = self._peers.pop(address, None)
        if stream is not None:
            stream.close()

    def broadcast(self, line: str, sender: Optional[PeerAddress] = None) -> None:
        """Send the line to every peer except the sender. A peer that cannot be written to is dropped from the roster."""
        with self._roster_lock:
            recipients = [
                (address, stream)
                for address, stream in self._peers.items()
                if address != sender
            ]

        for address, stream in recipients:
            try:
                stream.write_line(line)
            except TransportError as exc:
                _LOGGER.error("Removing peer %s:%s: %s", *address, exc)
                self._unregister(address)
