"""Castling: the four directions, the squares involved, and the paths that must be empty / unattacked"""

from dataclasses import dataclass
from enum import Enum
from typing import Self

from src.chess.pieces import Color
from src.chess.square import Square


class CastlingDirection(Enum):
    """Valued by the letter that stands for the right in a FEN string"""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"

    @property
    def color(self) -> Color:
        return Color.WHITE if self.value.isupper() else Color.BLACK


# Order in which the rights are written in a FEN string
CASTLING_ORDER: tuple[CastlingDirection, ...] = (
    CastlingDirection.WHITE_KING_SIDE,
    CastlingDirection.WHITE_QUEEN_SIDE,
    CastlingDirection.BLACK_KING_SIDE,
    CastlingDirection.BLACK_QUEEN_SIDE,
)


@dataclass(frozen=True)
class CastlingSquares:
    """Where king and rook stand before and after castling. While the right exists both are still on their `_from` squares."""

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @classmethod
    def from_algebraic(cls, k_from: str, k_to: str, r_from: str, r_to: str) -> Self:
        return cls(*(Square.from_algebraic(name) for name in (k_from, k_to, r_from, r_to)))


# king from / to, rook from / to
CASTLING_RULES: dict[CastlingDirection, CastlingSquares] = {
    CastlingDirection.WHITE_KING_SIDE: CastlingSquares.from_algebraic("e1", "g1", "h1", "f1"),
    CastlingDirection.WHITE_QUEEN_SIDE: CastlingSquares.from_algebraic("e1", "c1", "a1", "d1"),
    CastlingDirection.BLACK_KING_SIDE: CastlingSquares.from_algebraic("e8", "g8", "h8", "f8"),
    CastlingDirection.BLACK_QUEEN_SIDE: CastlingSquares.from_algebraic("e8", "c8", "a8", "d8"),
}


def castling_directions(color: Color) -> list[CastlingDirection]:
    return [direction for direction in CASTLING_ORDER if direction.color == color]


def squares_between_on_rank(from_square: Square, to_square: Square) -> list[Square]:
    """Squares strictly between two squares of the same rank, walking from `from_square` towards `to_square`"""
    if from_square.rank != to_square.rank:
        raise ValueError(f"{from_square} and {to_square} are not on the same rank")

    step = 1 if to_square.file > from_square.file else -1
    return [
        Square(file, from_square.rank)
        for file in range(from_square.file + step, to_square.file, step)
    ]


def castling_path(direction: CastlingDirection) -> list[Square]:
    """Squares between king and rook. All of them must be empty."""
    rule = CASTLING_RULES[direction]
    return squares_between_on_rank(rule.king_from, rule.rook_from)


def king_path(direction: CastlingDirection) -> list[Square]:
    """Squares the king stands on, passes through and lands on. None of them may be attacked."""
    rule = CASTLING_RULES[direction]
    return [
        rule.king_from,
        *squares_between_on_rank(rule.king_from, rule.king_to),
        rule.king_to,
    ]
