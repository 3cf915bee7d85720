"""Piece kinds, the two sides, and the letters FEN / UCI use for them"""

from dataclasses import dataclass
from enum import Enum
from typing import Self


class PieceType(Enum):
    """Valued by the (lower case) letter used in FEN and in UCI promotion suffixes"""

    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"


class Color(Enum):
    WHITE = "w"
    BLACK = "b"

    @property
    def opposite(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    def to_fen(self) -> str:
        return self.value

    @classmethod
    def from_fen(cls, code: str) -> Self:
        return cls(code)


FEN_TO_PIECE: dict[str, PieceType] = {piece_type.value: piece_type for piece_type in PieceType}
PIECE_TO_FEN: dict[PieceType, str] = {piece_type: piece_type.value for piece_type in PieceType}


@dataclass(frozen=True)
class Piece:
    """Immutable once placed. Capturing / promoting replaces the piece on the square."""

    type: PieceType
    color: Color

    @classmethod
    def from_fen(cls, character: str) -> Self:
        # White pieces are written in upper case
        color = Color.WHITE if character.isupper() else Color.BLACK
        return cls(PieceType(character.lower()), color)

    def to_fen(self) -> str:
        letter = self.type.value
        return letter.upper() if self.color is Color.WHITE else letter

    def promoted_to(self, new_type: PieceType) -> Self:
        return type(self)(new_type, self.color)
