"""
Squares as the rules engine addresses them: (file, rank), both counted from 1 so that a1 is (1, 1).
The UI uses its own row / column grid, see coord.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import ascii_lowercase

# (number of files, number of ranks)
BOARD_DIMENSIONS = (8, 8)


@dataclass(frozen=True)
class Square:
    file: int
    rank: int

    @classmethod
    def from_algebraic(cls, notation: str) -> Square:
        """'e4' -> Square(5, 4). No bounds checking: validate first where the text comes from outside."""
        return cls(ascii_lowercase.index(notation[0]) + 1, int(notation[1:]))

    @classmethod
    def from_index(cls, index: int) -> Square:
        """Inverse of `index`: 0 is a1, 7 is h1, 63 is h8"""
        rank_idx, file_idx = divmod(index, BOARD_DIMENSIONS[0])
        return cls(file_idx + 1, rank_idx + 1)

    def to_algebraic(self) -> str:
        return f"{ascii_lowercase[self.file - 1]}{self.rank}"

    @property
    def index(self) -> int:
        return (self.rank - 1) * BOARD_DIMENSIONS[0] + self.file - 1

    def is_within_bounds(self) -> bool:
        num_files, num_ranks = BOARD_DIMENSIONS
        return 0 < self.file <= num_files and 0 < self.rank <= num_ranks

    def offset(self, df: int, dr: int) -> Square:
        # may fall off the board, see is_within_bounds
        return Square(self.file + df, self.rank + dr)


def all_squares() -> list[Square]:
    num_files, num_ranks = BOARD_DIMENSIONS
    return [Square.from_index(index) for index in range(num_files * num_ranks)]
