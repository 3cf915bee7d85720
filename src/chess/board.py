"""The Board holds the position (in chess: the configuration of pieces on the board) and answers geometric questions about it"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.coord import Coordinate
from src.chess.moves import MOVEMENT_RULES, Move, is_square_attacked
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square

STARTING_POSITION = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
EMPTY_POSITION = "8/8/8/8/8/8/8/8"

# A grid of rows as the UI sees them: grid[row][col], row 0 is the 8th rank
Grid = list[list[Optional[Piece]]]


@dataclass
class Board:
    """Only occupied squares are stored. A missing square is an empty square."""

    position: dict[Square, Piece] = field(default_factory=dict)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """
        Placement field of a FEN string, e.g. "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR".
        Ranks run from the 8th down to the 1st, files from a to h; a digit skips that many empty squares.
        """
        num_ranks = BOARD_DIMENSIONS[1]
        position: dict[Square, Piece] = {}
        for rank, rank_fen in zip(range(num_ranks, 0, -1), fen_str.split("/")):
            file = 1
            for character in rank_fen:
                if character.isdecimal():
                    file += int(character)
                    continue
                position[Square(file, rank)] = Piece.from_fen(character)
                file += 1
        return cls(position)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_POSITION)

    @classmethod
    def from_grid(cls, grid: Grid) -> Self:
        """Build a board from rows of optional pieces, indexed the way the UI indexes them (see `Coordinate`)"""
        position: dict[Square, Piece] = {}
        for row, pieces in enumerate(grid):
            for col, piece in enumerate(pieces):
                if piece is None:
                    continue
                square = Coordinate(row, col).to_native_square()
                if square is None:
                    raise ValueError(f"Grid does not fit on the board: ({row}, {col})")
                position[square] = piece
        return cls(position)

    def to_grid(self) -> Grid:
        num_files, num_ranks = BOARD_DIMENSIONS
        return [
            [self[Coordinate(row, col)] for col in range(num_files)]
            for row in range(num_ranks)
        ]

    def to_fen(self) -> str:
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1], 0, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        parts: list[str] = []
        gap = 0
        for file in range(1, BOARD_DIMENSIONS[0] + 1):
            piece = self.piece(Square(file, rank))
            if piece is None:
                gap += 1
                continue
            if gap:
                parts.append(str(gap))
                gap = 0
            parts.append(piece.to_fen())
        if gap:
            parts.append(str(gap))
        return "".join(parts)

    def __getitem__(self, key: Square | Coordinate) -> Optional[Piece]:
        square = key.to_native_square() if isinstance(key, Coordinate) else key
        if square is None:
            return None
        return self.piece(square)

    def copy(self) -> Board:
        # Pieces are immutable, so a shallow copy of the mapping is a full copy of the position
        return Board(dict(self.position))

    def piece(self, square: Square) -> Optional[Piece]:
        return self.position.get(square)

    def place_piece(self, piece: Piece, square: Square) -> None:
        self.position[square] = piece

    def remove_piece(self, square: Square) -> Optional[Piece]:
        return self.position.pop(square, None)

    def move_piece(self, move: Move) -> Optional[Piece]:
        """Update the position on the board. Returns whatever got captured on the target square."""
        piece_that_moved = self.position.pop(move.from_square)
        captured = self.position.get(move.to_square)
        self.position[move.to_square] = piece_that_moved
        return captured

    def is_occupied(self, square: Square) -> bool:
        return square in self.position

    def is_any_occupied(self, squares: list[Square]) -> bool:
        return any(self.is_occupied(square) for square in squares)

    def locate_pieces(self, piece_type: PieceType, color: Color) -> list[Square]:
        target = Piece(piece_type, color)
        return [square for square, piece in self.position.items() if piece == target]

    def locate_color(self, color: Color) -> list[Square]:
        return [
            square for square, piece in self.position.items() if piece.color == color
        ]

    def king_square(self, color: Color) -> Optional[Square]:
        kings = self.locate_pieces(PieceType.KING, color)
        return kings[0] if kings else None

    def generate_candidate_moves(self, color: Color) -> list[Move]:
        """Moves by piece geometry only. The GameBoard filters out the ones that leave the own king in check."""
        return [
            move
            for square in self.locate_color(color)
            for move in MOVEMENT_RULES[self.position[square].type](square, self)
        ]

    def is_under_attack(self, square: Square, by_color: Color) -> bool:
        return is_square_attacked(square, by_color, self)

    def is_any_under_attack(self, squares: list[Square], by_color: Color) -> bool:
        return any(self.is_under_attack(square, by_color) for square in squares)

    def is_check(self, color: Color) -> bool:
        """Is the king of `color` attacked? A board without that king is never in check."""
        king = self.king_square(color)
        if king is None:
            return False
        return self.is_under_attack(king, color.opposite)

