"""
The Game class is the entrypoint into the domain layer for the service layer (and the UI).
It is responsible for orchestrating all the business logic required to play a turn:
it owns the GameBoard, tracks whose turn it is, derives the state of the game after every move and
dispatches turns to the (optional) opponent.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Self

from src.chess.clock import Clock
from src.chess.coord import Coordinate
from src.chess.game_board import GameBoard
from src.chess.moves import MoveRecord
from src.chess.opponent import (
    EngineOpponent,
    MoveEngine,
    MovePeer,
    NetworkOpponent,
    NoOpponent,
    Opponent,
    opponent_color,
    opponent_kind,
)
from src.chess.pgn import replay_pgn
from src.chess.pieces import Color, PieceType
from src.chess.square import Square
from src.core.exceptions import (
    EngineUnavailableError,
    GameStateError,
    IllegalMoveError,
    ProtocolParseError,
    TransportError,
)
from src.core.models import GameModel
from src.network.notation import move_to_text, text_to_move

_LOGGER = logging.getLogger(__name__)


class GameState(Enum):
    PLAYING = auto()
    CHECK = auto()
    CHECKMATE = auto()
    STALEMATE = auto()
    DRAW = auto()
    AWAITING_OPPONENT = auto()
    TIMEOUT = auto()


TERMINAL_STATES = frozenset(
    {GameState.CHECKMATE, GameState.STALEMATE, GameState.DRAW, GameState.TIMEOUT}
)


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE / UI ---

    board: GameBoard = field(default_factory=GameBoard)
    player_turn: Color = Color.WHITE
    game_state: GameState = GameState.PLAYING
    opponent: Opponent = field(default_factory=NoOpponent)
    clock: Optional[Clock] = None

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Start from an arbitrary position instead of the standard one (raises InvalidFENError)"""
        board = GameBoard.from_fen(fen)
        game = cls(board=board, player_turn=board.side_to_move())
        game._update_game_state()
        return game

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Rebuild an archived game by replaying its moves from the first recorded position"""
        status_name = model.status.upper()
        if status_name not in GameState.__members__:
            raise GameStateError(
                f"Invalid status code: {model.status!r}. \nPick one from {','.join([state.name.lower() for state in GameState])}"
            )
        if not model.history_fen:
            raise GameStateError("Cannot rebuild a game without its starting position")

        game = cls.from_fen(model.history_fen[0])
        for uci in model.moves_uci:
            from_coord, to_coord, promotion = text_to_move(uci)
            game._apply(from_coord, to_coord, promotion)
        return game

    @classmethod
    def from_pgn(cls, text: str) -> Self:
        """Replay a game written in PGN (raises InvalidPGNError / IllegalMoveError / InvalidFENError)"""
        board = replay_pgn(text)
        game = cls(board=board, player_turn=board.side_to_move())
        game._update_game_state()
        return game

    def to_model(self) -> GameModel:
        """Encode into a format the Service / DB layers use"""
        winner = self.winner
        return GameModel(
            current_fen=self.fen_position(),
            history_fen=list(self.board.position_history),
            moves_uci=[record.to_uci() for record in self.board.move_history],
            status=self.game_state.name.lower(),
            opponent=opponent_kind(self.opponent),
            winner=winner.name.lower() if winner else None,
        )

    # --- PROPERTIES ---
    @property
    def bot(self) -> Optional[MoveEngine]:
        return self.opponent.engine if isinstance(self.opponent, EngineOpponent) else None

    @property
    def peer(self) -> Optional[MovePeer]:
        return self.opponent.peer if isinstance(self.opponent, NetworkOpponent) else None

    @property
    def is_over(self) -> bool:
        return self.game_state in TERMINAL_STATES

    @property
    def winner(self) -> Optional[Color]:
        """
        Only defined for checkmate and timeout.
        Either way the loser is the player to move: mated, or out of time while thinking.
        """
        if self.game_state not in (GameState.CHECKMATE, GameState.TIMEOUT):
            return None
        return self.player_turn.opposite

    def fen_position(self) -> str:
        return self.board.fen_position(last_mover=self.player_turn.opposite)

    def is_check(self) -> bool:
        """Still reports a check while the opponent has to answer it"""
        return self.board.is_check(self.player_turn)

    def is_checkmate(self) -> bool:
        return self.board.is_checkmate(self.player_turn)

    def is_opponent_turn(self) -> bool:
        return opponent_color(self.opponent) == self.player_turn

    # --- MOVES ---
    def execute_move(
        self,
        from_coord: Coordinate,
        to_coord: Coordinate,
        promotion: Optional[PieceType] = None,
    ) -> MoveRecord:
        """
        Attempt to make a move for the local player
        -----

        1. make sure the game is still running and it is not the opponent's turn
        2. validate and apply the move (GameBoard), which updates the move and position histories
        3. hand the turn to the other side and recompute the game state
        4. forward the move to a network opponent

        Raises IllegalMoveError (nothing changes) or GameStateError.
        """
        self.check_time()
        self._assert_accepting_moves()
        if self.game_state == GameState.AWAITING_OPPONENT:
            raise GameStateError("Waiting for the opponent to move")

        record = self._apply(from_coord, to_coord, promotion)

        if isinstance(self.opponent, NetworkOpponent):
            self._forward_to_peer(self.opponent.peer, record)
        return record

    def switch_player_turn(self) -> None:
        self.player_turn = self.player_turn.opposite

    def play_opponent_move(self) -> Optional[MoveRecord]:
        """
        Run the opponent's turn (if it is theirs).

        * engine: blocking request for the best move in the current position.
        * network peer: non-blocking look into the mailbox of received moves.

        Returns the applied move or None when nothing was played.
        """
        self.check_time()
        if self.game_state != GameState.AWAITING_OPPONENT:
            return None

        if isinstance(self.opponent, EngineOpponent):
            return self._play_engine_move(self.opponent.engine)
        if isinstance(self.opponent, NetworkOpponent):
            return self._play_peer_move(self.opponent.peer)
        return None

    def play_engine_reply(self, move_text: str) -> Optional[MoveRecord]:
        """
        Apply a move the attached engine came up with. The search itself may have run elsewhere, see GameSession.pump_opponent.
        An unreadable or illegal answer detaches the engine and the game goes on without it.
        """
        if self.bot is None or self.game_state != GameState.AWAITING_OPPONENT:
            return None
        try:
            from_coord, to_coord, promotion = text_to_move(move_text)
            return self._apply(from_coord, to_coord, promotion)
        except (ProtocolParseError, IllegalMoveError):
            _LOGGER.exception("Engine answered with an unusable move: %r", move_text)
            self.detach_opponent()
            return None

    def engine_failed(self) -> None:
        """The engine could not answer at all: continue without the bot (human vs. human)"""
        _LOGGER.error("Engine could not provide a move")
        self.detach_opponent()

    # --- CLOCK ---
    def start_clock(self, clock: Clock) -> None:
        self._assert_accepting_moves()
        self.clock = clock
        clock.start(self.player_turn)

    def check_time(self) -> bool:
        """Ends the game once the side to move ran out of time. True if the game was lost on time."""
        if self.clock is not None and not self.is_over and self.clock.is_time_up(self.player_turn):
            self.clock.stop()
            _LOGGER.info("%s ran out of time", self.player_turn.name.lower())
            self._change_state(GameState.TIMEOUT)
        return self.game_state == GameState.TIMEOUT

    # --- OPPONENTS ---
    def attach_bot(self, engine: MoveEngine, color: Color) -> None:
        self._attach(EngineOpponent(engine, color))

    def attach_peer(self, peer: MovePeer, color: Color, is_server: bool = False) -> None:
        self._attach(NetworkOpponent(peer, color, is_server=is_server))

    def detach_opponent(self) -> None:
        _LOGGER.info("Detaching %s opponent", opponent_kind(self.opponent))
        self.opponent = NoOpponent()
        if not self.is_over:
            self._update_game_state()

    # -- PRIVATE HELPERS ---
    def _attach(self, opponent: Opponent) -> None:
        self._assert_accepting_moves()
        _LOGGER.info(
            "Attaching %s opponent playing %s",
            opponent_kind(opponent),
            opponent_color(opponent).name.lower(),
        )
        self.opponent = opponent
        self._update_game_state()

    def _assert_accepting_moves(self) -> None:
        if self.is_over:
            raise GameStateError(
                f"Game is over. status: {self.game_state.name.lower()}"
            )

    def _apply(
        self,
        from_coord: Coordinate,
        to_coord: Coordinate,
        promotion: Optional[PieceType],
    ) -> MoveRecord:
        from_square = self._to_square(from_coord)
        to_square = self._to_square(to_coord)
        record = self.board.execute_move(
            from_square, to_square, self.player_turn, promotion
        )
        self.switch_player_turn()
        self._update_game_state()
        if self.clock is not None:
            if self.is_over:
                self.clock.stop()
            else:
                self.clock.start(self.player_turn)
        _LOGGER.info(
            "Move %s played, state: %s", record.to_uci(), self.game_state.name.lower()
        )
        return record

    @staticmethod
    def _to_square(coord: Coordinate) -> Square:
        square = coord.to_native_square()
        if square is None:
            raise IllegalMoveError(f"Position is not on the board: {coord}")
        return square

    def _update_game_state(self) -> None:
        """
        Evaluated from the perspective of the side now to move
        ----

        1. no legal move and in check --> checkmate
        2. no legal move, not in check --> stalemate
        3. threefold repetition or 50 moves without capture / pawn move --> draw
        4. the opponent has to answer --> awaiting opponent
        5. in check --> check, otherwise --> playing
        """
        color = self.player_turn
        in_check = self.board.is_check(color)

        if not self.board.has_legal_move(color):
            new_state = GameState.CHECKMATE if in_check else GameState.STALEMATE
        elif self.board.is_draw_by_repetition() or self.board.is_draw_by_fifty_moves():
            new_state = GameState.DRAW
        elif self.is_opponent_turn():
            new_state = GameState.AWAITING_OPPONENT
        elif in_check:
            new_state = GameState.CHECK
        else:
            new_state = GameState.PLAYING
        self._change_state(new_state)

    def _change_state(self, new_state: GameState) -> None:
        if new_state != self.game_state:
            _LOGGER.debug(
                "Game state %s -> %s",
                self.game_state.name.lower(),
                new_state.name.lower(),
            )
        self.game_state = new_state

    def _forward_to_peer(self, peer: MovePeer, record: MoveRecord) -> None:
        move_text = move_to_text(
            Coordinate.from_native_square(record.from_square),
            Coordinate.from_native_square(record.to_square),
            record.promotion,
        )
        try:
            peer.send_move(move_text)
        except TransportError:
            _LOGGER.exception("Lost connection to the opponent while sending %s", move_text)
            self.detach_opponent()

    def _play_engine_move(self, engine: MoveEngine) -> Optional[MoveRecord]:
        try:
            best_move = engine.best_move(self.fen_position())
        except EngineUnavailableError:
            self.engine_failed()
            return None
        return self.play_engine_reply(best_move)

    def _play_peer_move(self, peer: MovePeer) -> Optional[MoveRecord]:
        try:
            move_text = peer.poll_move()
        except TransportError:
            _LOGGER.exception("Session with the opponent ended")
            self.detach_opponent()
            return None
        if move_text is None:
            return None

        try:
            from_coord, to_coord, promotion = text_to_move(move_text)
            return self._apply(from_coord, to_coord, promotion)
        except (ProtocolParseError, IllegalMoveError):
            # the move is dropped, the connection stays
            _LOGGER.exception("Rejected move received from opponent: %r", move_text)
            return None
