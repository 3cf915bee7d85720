"""
The GameBoard is the authoritative record of a game of chess on the board level:
the current Board, the append-only move history, and the history of positions (FEN strings) reached.

It implements the rules that depend on history (castling rights, en passant, the fifty-move counter, repetition)
as pure functions over the move history. No cached flags that could drift away from the log.

     . a b c d e f g h .
     8 r n b q k b n r 8      row 0
     7 p p p p p p p p 7      row 1
     ...
     2 P P P P P P P P 2      row 6
     1 R N B Q K B N R 1      row 7
     . a b c d e f g h .
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.board import Board
from src.chess.castling import (
    CASTLING_RULES,
    CastlingDirection,
    castling_directions,
    castling_path,
    king_path,
)
from src.chess.fen import FENState, position_key
from src.chess.moves import (
    Move,
    MoveRecord,
    en_passant_moves,
    is_pawn_push_to_promotion_square,
    pawn_pushes_w_promotion,
)
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square
from src.core.exceptions import IllegalMoveError

_LOGGER = logging.getLogger(__name__)

# 50 full moves without a capture or a pawn move
FIFTY_MOVE_RULE_PLIES = 100
REPETITIONS_FOR_DRAW = 3
DEFAULT_PROMOTION = PieceType.QUEEN


def _default_initial_state() -> FENState:
    return FENState.starting_position()


@dataclass
class GameBoard:
    board: Board = field(default_factory=Board.starting_position)
    move_history: list[MoveRecord] = field(default_factory=list)
    position_history: list[str] = field(default_factory=list)  # list of FEN strings
    # metadata of the position the game started from (side to move, rights granted by a FEN, counters)
    initial_state: FENState = field(default_factory=_default_initial_state)

    def __post_init__(self) -> None:
        # The starting position is part of the history too
        if not self.position_history:
            self.position_history.append(self.fen_position())

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Start from an arbitrary position (raises InvalidFENError)"""
        state = FENState.from_fen(fen)
        return cls(board=Board.from_fen(state.position), initial_state=state)

    @classmethod
    def from_layout(
        cls, board: Board, move_history: Optional[list[MoveRecord]] = None
    ) -> Self:
        """
        Seed a custom layout. Any move history supplied is treated as having been played before this snapshot:
        it still counts for castling rights / en passant, but the position history starts at the given layout.
        So a seeded board holds one position for N earlier moves. Only boards built by playing moves
        keep one position per move (plus the starting one).
        """
        return cls(board=board, move_history=list(move_history or []))

    # --- HISTORY DERIVED STATE ---
    @property
    def last_move(self) -> Optional[MoveRecord]:
        return self.move_history[-1] if self.move_history else None

    def side_to_move(self) -> Color:
        last_move = self.last_move
        if last_move is None:
            return self.initial_state.color_to_move
        return last_move.piece_color.opposite

    def castling_rights(self) -> dict[CastlingDirection, bool]:
        """
        A side keeps a castling right only if the king and that rook still stand on their home squares
        and neither home square ever was the origin or the target of a move (so moved or captured pieces revoke the right).
        """
        return {
            direction: self._has_castling_right(direction)
            for direction in CastlingDirection
        }

    def _has_castling_right(self, direction: CastlingDirection) -> bool:
        if not self.initial_state.castling_rights.get(direction, False):
            return False
        rule = CASTLING_RULES[direction]
        color = direction.color
        return (
            self.board.piece(rule.king_from) == Piece(PieceType.KING, color)
            and self.board.piece(rule.rook_from) == Piece(PieceType.ROOK, color)
            and not self._square_touched(rule.king_from)
            and not self._square_touched(rule.rook_from)
        )

    def _square_touched(self, square: Square) -> bool:
        return any(
            record.from_square == square or record.to_square == square
            for record in self.move_history
        )

    def en_passant_square(self) -> Optional[Square]:
        """Only right after a two-square pawn advance: the square the pawn skipped."""
        last_move = self.last_move
        if last_move is None:
            return self.initial_state.en_passant_square
        if not last_move.is_double_pawn_push:
            return None
        skipped_rank = (last_move.from_square.rank + last_move.to_square.rank) // 2
        return Square(last_move.from_square.file, skipped_rank)

    def halfmove_clock(self) -> int:
        """Number of half-moves since the last capture or pawn move"""
        count = 0
        for record in reversed(self.move_history):
            if record.resets_halfmove_clock:
                return count
            count += 1
        return self.initial_state.half_move_clock + count

    def fullmove_number(self) -> int:
        """Starts at 1 and increments after every move black makes"""
        black_moves = sum(
            1 for record in self.move_history if record.piece_color == Color.BLACK
        )
        return self.initial_state.num_turns + black_moves

    def captured_pieces(self) -> list[Piece]:
        return [record.captured for record in self.move_history if record.captured]

    def king_square(self, color: Color) -> Optional[Square]:
        return self.board.king_square(color)

    # --- POSITION ENCODER ---
    def fen_position(
        self, include_counters: bool = True, last_mover: Optional[Color] = None
    ) -> str:
        """
        FEN of the current position.

        `last_mover` is the side that just moved (or, on a freshly seeded board, the side the position was set up for):
        the encoded active color is the side that has to reply to it. Without it, the side to move follows from the history.
        With `include_counters=False` only the first four fields (the ones that matter for repetition) are written.
        """
        color_to_move = (
            last_mover.opposite if last_mover is not None else self.side_to_move()
        )
        state = FENState(
            position=self.board.to_fen(),
            color_to_move=color_to_move,
            castling_rights=self.castling_rights(),
            en_passant_square=self.en_passant_square(),
            half_move_clock=self.halfmove_clock(),
            num_turns=self.fullmove_number(),
        )
        return state.to_fen(include_counters=include_counters)

    def repetition_count(self) -> int:
        """How often the current position (ignoring the move counters) occurs in the position history"""
        counts = Counter(position_key(fen) for fen in self.position_history)
        return counts[position_key(self.position_history[-1])]

    # --- LEGAL MOVES ---
    def legal_moves(self, color: Color) -> list[Move]:
        """
        List of legal moves for the player with the 'color' pieces
        ----

        1. generate candidate moves, using the basic movement rules for all pieces (the board does this calculation)
        2. add candidate castling moves
        3. add candidate en passant moves
        4. remove illegal options --> a move that would put you in check or you are in check and the move does not get you out of it.
        5. Pawn push to promotion square? --> expand the set of moves to include one for every choice of piece type to promote into.
        """
        candidate_moves = self.board.generate_candidate_moves(color)
        candidate_moves.extend(self._castling_moves(color))

        en_passant_target = self._en_passant_target_for(color)
        if en_passant_target is not None:
            candidate_moves.extend(
                en_passant_moves(en_passant_target, color, self.board)
            )

        legal_moves: list[Move] = []
        for move in candidate_moves:
            if self._is_putting_yourself_in_check(move, color):
                continue
            if is_pawn_push_to_promotion_square(move, self.board):
                legal_moves.extend(pawn_pushes_w_promotion(move))
            else:
                legal_moves.append(move)
        return legal_moves

    def has_legal_move(self, color: Color) -> bool:
        return len(self.legal_moves(color)) > 0

    def authorized_destinations(self, square: Square, color: Color) -> list[Square]:
        """Where can the piece on `square` go? (Empty list for an empty square or an opponent's piece)"""
        piece = self.board.piece(square)
        if piece is None or piece.color != color:
            return []
        destinations: list[Square] = []
        for move in self.legal_moves(color):
            if move.from_square == square and move.to_square not in destinations:
                destinations.append(move.to_square)
        return destinations

    def _castling_moves(self, color: Color) -> list[Move]:
        """
        **you are allowed to castle if**

        * Castling rights are not yet revoked (neither king nor rook moved).
        * No piece stands between the king and the rook.
        * No square the king stands on, passes or lands on is under attack (so you cannot castle out of check either).
        """
        rights = self.castling_rights()
        moves: list[Move] = []
        for direction in castling_directions(color):
            if not rights[direction]:
                continue
            if self.board.is_any_occupied(castling_path(direction)):
                continue
            if self.board.is_any_under_attack(king_path(direction), color.opposite):
                continue
            rule = CASTLING_RULES[direction]
            moves.append(
                Move(rule.king_from, rule.king_to, castling_direction=direction)
            )
        return moves

    def _en_passant_target_for(self, color: Color) -> Optional[Square]:
        """The en passant square only serves the side replying to the double pawn push."""
        if self.side_to_move() != color:
            return None
        return self.en_passant_square()

    def _is_putting_yourself_in_check(self, move: Move, color: Color) -> bool:
        """Play the move on a copy of the board and see if your own king is attacked afterwards"""
        board = self.board.copy()
        self._apply_to_board(board, move)
        return board.is_check(color)

    @staticmethod
    def _apply_to_board(board: Board, move: Move) -> Optional[Piece]:
        """Displace the pieces for the move. Returns the captured piece (if any)."""
        if move.castling_direction is not None:
            rule = CASTLING_RULES[move.castling_direction]
            board.move_piece(Move(rule.king_from, rule.king_to))
            board.move_piece(Move(rule.rook_from, rule.rook_to))
            return None

        captured = board.move_piece(move)
        if move.is_en_passant:
            # the pawn taken stands next to the moving pawn: target file, original rank
            captured = board.remove_piece(
                Square(move.to_square.file, move.from_square.rank)
            )
        if move.promote_to is not None:
            pawn = board.piece(move.to_square)
            assert pawn is not None
            board.place_piece(pawn.promoted_to(move.promote_to), move.to_square)
        return captured

    # --- MOVE EXECUTOR ---
    def execute_move(
        self,
        from_square: Square,
        to_square: Square,
        color: Optional[Color] = None,
        promotion: Optional[PieceType] = None,
    ) -> MoveRecord:
        """
        Validate and apply a move for `color` (defaults to the side to move according to the history).

        Raises IllegalMoveError and leaves board and histories untouched when the move is not allowed.
        """
        color = color if color is not None else self.side_to_move()
        moving_piece = self.board.piece(from_square)
        if moving_piece is None:
            raise IllegalMoveError(f"No piece to move on {from_square.to_algebraic()}")
        if moving_piece.color != color:
            raise IllegalMoveError(
                f"Piece on {from_square.to_algebraic()} does not belong to {color.name.lower()}"
            )

        move = self._select_legal_move(from_square, to_square, color, promotion)

        # Work on a copy, only commit once everything succeeded
        new_board = self.board.copy()
        captured = self._apply_to_board(new_board, move)
        record = MoveRecord(
            piece_type=moving_piece.type,
            piece_color=moving_piece.color,
            from_square=from_square,
            to_square=to_square,
            captured=captured,
            promotion=move.promote_to,
            castling=move.castling_direction,
            is_en_passant=move.is_en_passant,
        )

        self.board = new_board
        self.move_history.append(record)
        self.position_history.append(self.fen_position())
        _LOGGER.debug("Applied move %s (%s)", record.to_uci(), color.name.lower())
        return record

    def execute_uci(self, uci: str, color: Optional[Color] = None) -> MoveRecord:
        move = Move.from_uci(uci)
        return self.execute_move(
            move.from_square, move.to_square, color=color, promotion=move.promote_to
        )

    def _select_legal_move(
        self,
        from_square: Square,
        to_square: Square,
        color: Color,
        promotion: Optional[PieceType],
    ) -> Move:
        matching = [
            move
            for move in self.legal_moves(color)
            if move.from_square == from_square and move.to_square == to_square
        ]
        description = f"{from_square.to_algebraic()}{to_square.to_algebraic()}"
        if not matching:
            raise IllegalMoveError(f"Move not allowed: {description}")

        is_promotion = any(move.promote_to is not None for move in matching)
        if not is_promotion:
            if promotion is not None:
                raise IllegalMoveError(f"{description} is not a promotion")
            return matching[0]

        wanted = promotion if promotion is not None else DEFAULT_PROMOTION
        for move in matching:
            if move.promote_to == wanted:
                return move
        raise IllegalMoveError(f"Cannot promote to {wanted.name.lower()}")

    # --- CHECKS FOR ENDING THE GAME ---
    def is_check(self, color: Optional[Color] = None) -> bool:
        color = color if color is not None else self.side_to_move()
        return self.board.is_check(color)

    def is_checkmate(self, color: Optional[Color] = None) -> bool:
        color = color if color is not None else self.side_to_move()
        return self.is_check(color) and not self.has_legal_move(color)

    def is_stalemate(self, color: Optional[Color] = None) -> bool:
        color = color if color is not None else self.side_to_move()
        return not self.is_check(color) and not self.has_legal_move(color)

    def is_draw_by_repetition(self) -> bool:
        return self.repetition_count() >= REPETITIONS_FOR_DRAW

    def is_draw_by_fifty_moves(self) -> bool:
        return self.halfmove_clock() >= FIFTY_MOVE_RULE_PLIES

    def is_draw(self, color: Optional[Color] = None) -> bool:
        return (
            self.is_stalemate(color)
            or self.is_draw_by_fifty_moves()
            or self.is_draw_by_repetition()
        )
