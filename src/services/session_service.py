"""
Orchestration of one running game: the UI loop and the network / engine side both go through the GameSession,
which owns the single lock that serializes every access to the Game. Finished games are handed to the archive.
"""

import logging
import threading
from pathlib import Path
from typing import Optional
from uuid import UUID

from src.chess.clock import Clock
from src.chess.coord import Coordinate
from src.chess.game import Game, GameState
from src.chess.moves import MoveRecord
from src.chess.opponent import MoveEngine
from src.chess.pieces import Color, PieceType
from src.core.config import Settings
from src.core.exceptions import (
    EngineUnavailableError,
    InvalidPGNError,
    ProtocolParseError,
    RepositoryError,
    TransportError,
)
from src.core.models import GameModel
from src.db.database import create_session_factory
from src.db.repository import GameRepository
from src.db.sql_repository import SQLGameRepository
from src.network.engine import UciEngine
from src.network.peer import PeerClient
from src.network.server import GameServer

_LOGGER = logging.getLogger(__name__)


class GameSession:
    """Orchestration of layers for one chess game."""

    def __init__(self, game: Game, repository: Optional[GameRepository] = None) -> None:
        self.game = game
        self.repo = repository
        self.lock = threading.Lock()
        self.archived_id: Optional[UUID] = None
        # kept after the game drops a misbehaving engine, so its process still gets stopped
        self.engine: Optional[MoveEngine] = game.bot

    # --- UI / LOOP FACING ---
    def play(
        self,
        from_coord: Coordinate,
        to_coord: Coordinate,
        promotion: Optional[PieceType] = None,
    ) -> MoveRecord:
        """Local player's move. Raises IllegalMoveError / GameStateError, the game is unchanged then."""
        with self.lock:
            record = self.game.execute_move(from_coord, to_coord, promotion)
            self._archive_if_finished()
        return record

    def pump_opponent(self) -> Optional[MoveRecord]:
        """
        Give the opponent its turn (called regularly by the UI loop).

        The engine searches without holding the lock: the UI keeps reading the game in the meantime.
        Its answer only counts if the game is still where the search started.
        """
        with self.lock:
            self.game.check_time()
            engine = self.game.bot
            if engine is None or self.game.game_state != GameState.AWAITING_OPPONENT:
                record = self.game.play_opponent_move()
                self._after_opponent_turn()
                return record
            fen = self.game.fen_position()
            plies = len(self.game.board.move_history)

        best_move: Optional[str] = None
        try:
            best_move = engine.best_move(fen)
        except EngineUnavailableError:
            _LOGGER.exception("Engine search failed")

        with self.lock:
            if self.game.bot is not engine or len(self.game.board.move_history) != plies:
                _LOGGER.info("Game moved on during the engine search, dropping %r", best_move)
                return None
            if best_move is None:
                self.game.engine_failed()
                record = None
            else:
                record = self.game.play_engine_reply(best_move)
            self._after_opponent_turn()
        return record

    def check_time(self) -> bool:
        """Flag fall check for the UI loop. True once the game is lost on time."""
        with self.lock:
            timed_out = self.game.check_time()
            self._archive_if_finished()
        return timed_out

    def snapshot(self) -> GameModel:
        with self.lock:
            return self.game.to_model()

    def fen(self) -> str:
        with self.lock:
            return self.game.fen_position()

    def end(self) -> None:
        """Leave the game: tell a network opponent, stop an engine, keep a record of the game"""
        with self.lock:
            peer = self.game.peer
            self.game.detach_opponent()
            if self.game.clock is not None:
                self.game.clock.stop()
            if self.archived_id is None:
                self._archive()

        if isinstance(peer, PeerClient):
            try:
                peer.send_end()
            except TransportError as exc:
                _LOGGER.warning("Could not tell the opponent the game ended: %s", exc)
        self._close_engine()

    # -- Internal helpers --
    def _after_opponent_turn(self) -> None:
        if self.engine is not None and self.game.bot is None:
            self._close_engine()
        self._archive_if_finished()

    def _close_engine(self) -> None:
        engine, self.engine = self.engine, None
        if isinstance(engine, UciEngine):
            engine.close()

    def _archive_if_finished(self) -> None:
        if self.game.is_over and self.archived_id is None:
            self._archive()

    def _archive(self) -> None:
        """Storing is best effort: the game itself already moved on. A failed attempt is retried on the next call."""
        if self.repo is None:
            return
        try:
            _, archived_id = self.repo.create_game(self.game.to_model())
        except RepositoryError:
            _LOGGER.exception("Could not archive the game")
            return
        self.archived_id = archived_id
        _LOGGER.info(
            "Archived game %s (%s)", self.archived_id, self.game.game_state.name.lower()
        )


def open_repository(settings: Settings) -> SQLGameRepository:
    session_factory = create_session_factory(settings.database_url)
    return SQLGameRepository(session_factory())


def load_archived_game(repository: GameRepository, game_id: UUID) -> Game:
    """Attempt to find the game in the repository and raise error if it fails."""
    game_model = repository.get_game(game_id)
    if game_model is None:
        raise RepositoryError(f"Game with {game_id=} not found.")
    return Game.from_model(game_model)


def load_pgn_game(path: Path) -> Game:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidPGNError(f"Cannot read {path}: {exc}") from exc
    return Game.from_pgn(text)


# --- SESSION SETUP ---
def _new_game(starting_fen: Optional[str]) -> Game:
    return Game.from_fen(starting_fen) if starting_fen else Game()


def _start_clock(game: Game, settings: Settings) -> None:
    if settings.clock_seconds is not None and not game.is_over:
        game.start_clock(Clock(settings.clock_seconds))


def host_network_game(
    settings: Settings,
    color: Color,
    repository: Optional[GameRepository] = None,
    starting_fen: Optional[str] = None,
) -> tuple[GameServer, GameSession]:
    """
    Start the relay server and join it ourselves: the host is network-authoritative and plays `color`.
    Raises TransportError when the endpoint cannot be bound.
    """
    server = GameServer(settings.host, settings.port, host_color=color)
    server.start()
    host, port = server.address
    try:
        client = PeerClient.connect(host, port)
    except (TransportError, ProtocolParseError):
        server.stop()
        raise

    game = _new_game(starting_fen)
    game.attach_peer(client, client.color.opposite, is_server=True)
    _start_clock(game, settings)
    return server, GameSession(game, repository)


def join_network_game(
    settings: Settings,
    repository: Optional[GameRepository] = None,
    starting_fen: Optional[str] = None,
) -> GameSession:
    """Connect to a hosted game. The server tells us which color we play."""
    client = PeerClient.connect(settings.host, settings.port)
    game = _new_game(starting_fen)
    game.attach_peer(client, client.color.opposite, is_server=False)
    _start_clock(game, settings)
    return GameSession(game, repository)


def start_bot_game(
    settings: Settings,
    human_color: Color,
    repository: Optional[GameRepository] = None,
    starting_fen: Optional[str] = None,
) -> GameSession:
    """Play against the engine. Without a working engine the game continues as human vs. human."""
    game = _new_game(starting_fen)
    if settings.engine_path is None:
        _LOGGER.warning("No engine configured, playing without bot")
        _start_clock(game, settings)
        return GameSession(game, repository)

    engine = UciEngine(
        settings.engine_path,
        depth=settings.bot_depth,
        difficulty=settings.bot_difficulty,
    )
    try:
        engine.start()
    except EngineUnavailableError:
        _LOGGER.exception("Engine unavailable, playing without bot")
    else:
        game.attach_bot(engine, human_color.opposite)
    _start_clock(game, settings)
    return GameSession(game, repository)
