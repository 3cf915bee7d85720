"""
Translation between the text sent over the wire (algebraic move notation, e.g. "e2e4" or "e7e8q")
and the Coordinates the Game works with.
"""

import re
from typing import Optional

from src.chess.coord import Coordinate
from src.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, PieceType
from src.core.exceptions import ProtocolParseError

MOVE_PATTERN = re.compile(r"^([a-h][1-8])([a-h][1-8])([qrbn])?$")

# Control messages of the session protocol
END_MESSAGE = "ended"
START_MESSAGE = "s"


def move_to_text(
    from_coord: Coordinate, to_coord: Coordinate, promotion: Optional[PieceType] = None
) -> str:
    """Outbound: Coordinates --> algebraic text"""
    if not (from_coord.is_valid() and to_coord.is_valid()):
        raise ValueError(f"Cannot encode move between {from_coord} and {to_coord}")
    suffix = PIECE_TO_FEN[promotion] if promotion is not None else ""
    return f"{from_coord.to_algebraic()}{to_coord.to_algebraic()}{suffix}"


def text_to_move(text: str) -> tuple[Coordinate, Coordinate, Optional[PieceType]]:
    """Inbound: algebraic text --> Coordinates (+ promotion piece if given)"""
    match = MOVE_PATTERN.match(text.strip())
    if match is None:
        raise ProtocolParseError(f"Not a move: {text!r}")
    from_text, to_text, promotion_char = match.groups()
    promotion = FEN_TO_PIECE[promotion_char] if promotion_char else None
    return (
        Coordinate.from_algebraic(from_text),
        Coordinate.from_algebraic(to_text),
        promotion,
    )


def is_move_text(text: str) -> bool:
    return MOVE_PATTERN.match(text.strip()) is not None
