"""unit tests for src/chess/castling.py"""

import pytest

from src.chess.castling import (
    CASTLING_ORDER,
    CASTLING_RULES,
    CastlingDirection,
    CastlingSquares,
    castling_directions,
    castling_path,
    king_path,
    squares_between_on_rank,
)
from src.chess.pieces import Color
from src.chess.square import Square


def names(squares: list[Square]) -> list[str]:
    return [square.to_algebraic() for square in squares]


@pytest.mark.parametrize(
    "direction,k_from,k_to,r_from,r_to",
    [
        (CastlingDirection.WHITE_KING_SIDE, "e1", "g1", "h1", "f1"),
        (CastlingDirection.WHITE_QUEEN_SIDE, "e1", "c1", "a1", "d1"),
        (CastlingDirection.BLACK_KING_SIDE, "e8", "g8", "h8", "f8"),
        (CastlingDirection.BLACK_QUEEN_SIDE, "e8", "c8", "a8", "d8"),
    ],
)
def test_castling_rules(
    direction: CastlingDirection, k_from: str, k_to: str, r_from: str, r_to: str
) -> None:
    """King and rook squares of classical castling"""
    assert CASTLING_RULES[direction] == CastlingSquares.from_algebraic(k_from, k_to, r_from, r_to)


def test_direction_colors() -> None:
    assert castling_directions(Color.WHITE) == [
        CastlingDirection.WHITE_KING_SIDE,
        CastlingDirection.WHITE_QUEEN_SIDE,
    ]
    assert castling_directions(Color.BLACK) == [
        CastlingDirection.BLACK_KING_SIDE,
        CastlingDirection.BLACK_QUEEN_SIDE,
    ]
    assert "".join(direction.value for direction in CASTLING_ORDER) == "KQkq"


def test_squares_between_on_rank() -> None:
    e1, a1, h1 = (Square.from_algebraic(name) for name in ["e1", "a1", "h1"])
    assert names(squares_between_on_rank(e1, h1)) == ["f1", "g1"]
    assert names(squares_between_on_rank(e1, a1)) == ["d1", "c1", "b1"]
    assert squares_between_on_rank(e1, Square.from_algebraic("f1")) == []


def test_squares_between_must_share_rank() -> None:
    with pytest.raises(ValueError):
        squares_between_on_rank(Square.from_algebraic("e1"), Square.from_algebraic("e8"))


def test_castling_paths() -> None:
    """Queen side: b-file must be empty, but the king never crosses it"""
    assert names(castling_path(CastlingDirection.WHITE_QUEEN_SIDE)) == ["d1", "c1", "b1"]
    assert names(king_path(CastlingDirection.WHITE_QUEEN_SIDE)) == ["e1", "d1", "c1"]
    assert names(castling_path(CastlingDirection.BLACK_KING_SIDE)) == ["f8", "g8"]
    assert names(king_path(CastlingDirection.BLACK_KING_SIDE)) == ["e8", "f8", "g8"]

