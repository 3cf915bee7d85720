"""
Board address as the user interface sees it: a row / column pair.

Row 0 is the rank furthest away from White (the 8th rank) and the row number grows towards White's side.
Columns run a -> h. The rules engine itself works with `Square`, so the conversion flips the rank axis:

    native rank (0-based) = 7 - row
    native file (0-based) = col
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.chess.square import BOARD_DIMENSIONS, Square

UNDEFINED_POSITION = -1


@dataclass(frozen=True, order=True)
class Coordinate:
    row: int
    col: int

    @classmethod
    def opt_new(cls, row: int, col: int) -> Optional[Coordinate]:
        """Only hand out a coordinate when it actually lies on the board"""
        coordinate = cls(row, col)
        return coordinate if coordinate.is_valid() else None

    @classmethod
    def undefined(cls) -> Coordinate:
        """Not yet set position. Has to be set later before it can be used."""
        return cls(UNDEFINED_POSITION, UNDEFINED_POSITION)

    @classmethod
    def from_native_square(cls, square: Square) -> Coordinate:
        _, num_ranks = BOARD_DIMENSIONS
        return cls(row=num_ranks - square.rank, col=square.file - 1)

    @classmethod
    def from_algebraic(cls, notation: str) -> Coordinate:
        return cls.from_native_square(Square.from_algebraic(notation))

    def is_valid(self) -> bool:
        num_files, num_ranks = BOARD_DIMENSIONS
        return (0 <= self.row < num_ranks) and (0 <= self.col < num_files)

    def reverse(self) -> Coordinate:
        """Rotate by 180 degrees (used when the board is displayed from Black's side)"""
        if not self.is_valid():
            return Coordinate.undefined()
        num_files, num_ranks = BOARD_DIMENSIONS
        return Coordinate(num_ranks - 1 - self.row, num_files - 1 - self.col)

    def to_native_square(self) -> Optional[Square]:
        if not self.is_valid():
            return None
        _, num_ranks = BOARD_DIMENSIONS
        return Square(file=self.col + 1, rank=num_ranks - self.row)

    def to_algebraic(self) -> Optional[str]:
        square = self.to_native_square()
        return square.to_algebraic() if square else None
