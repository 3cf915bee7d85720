"""FEN (Forsyth-Edwards Notation): parsing, validation and writing of the six fields"""

from dataclasses import dataclass
from itertools import combinations
from string import ascii_lowercase
from typing import Callable, Optional, Self

from src.chess.castling import CASTLING_ORDER, CastlingDirection
from src.chess.pieces import FEN_TO_PIECE, Color
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# Every subset of KQkq, written in canonical order, plus "-" when nothing is left
VALID_CASTLING_ENCODINGS = ["-"] + [
    "".join(direction.value for direction in subset)
    for size in range(1, len(CASTLING_ORDER) + 1)
    for subset in combinations(CASTLING_ORDER, size)
]

# Fields that make up a position for the purpose of repetition: placement, active color, castling, en passant
REPETITION_FIELDS = 4


def castling_from_fen(castle_fen: str) -> dict[CastlingDirection, bool]:
    """'KQk' -> rights per direction, anything not mentioned is revoked"""
    return {
        direction: (direction.value in castle_fen) for direction in CastlingDirection
    }


def castling_to_fen(castling_rights: dict[CastlingDirection, bool]) -> str:
    """Rights per direction -> 'KQk', or '-' when none are left"""
    castling_chars = "".join(
        [
            direction.value
            for direction in CASTLING_ORDER
            if castling_rights.get(direction, False)
        ]
    )
    return castling_chars or "-"


def position_key(fen: str) -> str:
    """Strip the move counters: two positions are 'the same' for repetition when the first four fields match."""
    return " ".join(fen.split(" ")[:REPETITION_FIELDS])


def is_valid_fen(fen: str) -> bool:
    """Six fields separated by single spaces, each one valid on its own"""
    fields = fen.split(" ")
    if len(fields) != len(FIELD_VALIDATORS):
        return False
    return all(validator(value) for validator, value in zip(FIELD_VALIDATORS, fields))


def is_valid_position(position: str) -> bool:
    """Eight ranks separated by '/', each one covering exactly eight files"""
    num_files, num_ranks = BOARD_DIMENSIONS
    ranks = position.split("/")
    return len(ranks) == num_ranks and all(
        _rank_width(rank) == num_files for rank in ranks
    )


def _rank_width(rank_fen: str) -> Optional[int]:
    """Number of files a rank covers. None as soon as something else than a piece letter or a digit shows up."""
    width = 0
    for character in rank_fen:
        if character.isdecimal():
            width += int(character)
        elif character.lower() in FEN_TO_PIECE:
            width += 1
        else:
            return None
    return width


def is_valid_color_code(color: str) -> bool:
    return color in {"w", "b"}


def is_valid_castling_rights(castling: str) -> bool:
    return castling in VALID_CASTLING_ENCODINGS


def is_valid_en_passant(en_passant: str) -> bool:
    return en_passant == "-" or is_valid_square(en_passant)


def is_valid_square(square: str) -> bool:
    """A file letter followed by a rank number, both on the board"""
    num_files, num_ranks = BOARD_DIMENSIONS
    # NOTE: file letters only go up to 26 files
    file_char, rank_text = square[:1], square[1:]
    return (
        len(file_char) == 1
        and file_char in ascii_lowercase[:num_files]
        and rank_text.isdecimal()
        and 1 <= int(rank_text) <= num_ranks
    )


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdecimal()


# One validator per FEN field, in field order
FIELD_VALIDATORS: list[Callable[[str], bool]] = [
    is_valid_position,
    is_valid_color_code,
    is_valid_castling_rights,
    is_valid_en_passant,
    is_valid_move_counter,
    is_valid_move_counter,
]


@dataclass
class FENState:
    """
    The six fields of a FEN (Forsyth-Edwards Notation) string, parsed:

        <placement> <side to move> <castling rights> <en passant target> <halfmove clock> <fullmove number>

    The halfmove clock counts plies since the last capture or pawn move, the fullmove number starts at 1
    and goes up after every Black move.
    """

    position: str
    color_to_move: Color
    castling_rights: dict[CastlingDirection, bool]
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Raises InvalidFENError unless every field is well formed"""
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Not a valid FEN string: {fen!r}")

        position, side, castling, en_passant, clock, turns = fen.split(" ")
        return cls(
            position=position,
            color_to_move=Color.from_fen(side),
            castling_rights=castling_from_fen(castling),
            en_passant_square=None if en_passant == "-" else Square.from_algebraic(en_passant),
            half_move_clock=int(clock),
            num_turns=int(turns),
        )

    def to_fen(self, include_counters: bool = True) -> str:
        """Without the counters the result is the repetition key of the position"""
        en_passant = "-" if self.en_passant_square is None else self.en_passant_square.to_algebraic()
        fields = [
            self.position,
            self.color_to_move.to_fen(),
            castling_to_fen(self.castling_rights),
            en_passant,
        ]
        if include_counters:
            fields += [str(self.half_move_clock), str(self.num_turns)]
        return " ".join(fields)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)
