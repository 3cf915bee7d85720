"""Unit tests for /src/chess/coord.py"""

from itertools import product

import pytest

from src.chess.coord import UNDEFINED_POSITION, Coordinate
from src.chess.square import Square, all_squares

VALID_COORDINATES = [Coordinate(row, col) for row, col in product(range(8), range(8))]


@pytest.mark.parametrize("coord", VALID_COORDINATES)
def test_native_square_round_trip(coord: Coordinate) -> None:
    square = coord.to_native_square()
    assert square is not None
    assert Coordinate.from_native_square(square) == coord


def test_every_square_has_exactly_one_coordinate() -> None:
    coords = {Coordinate.from_native_square(square) for square in all_squares()}
    assert coords == set(VALID_COORDINATES)


@pytest.mark.parametrize(
    "coord, notation",
    [
        (Coordinate(0, 0), "a8"),
        (Coordinate(7, 0), "a1"),
        (Coordinate(7, 7), "h1"),
        (Coordinate(0, 7), "h8"),
        (Coordinate(6, 4), "e2"),
        (Coordinate(4, 4), "e4"),
    ],
)
def test_rank_axis_is_flipped(coord: Coordinate, notation: str) -> None:
    """Row 0 is the 8th rank, rows grow towards White"""
    assert coord.to_native_square() == Square.from_algebraic(notation)
    assert coord.to_algebraic() == notation
    assert Coordinate.from_algebraic(notation) == coord


def test_undefined_is_never_valid() -> None:
    undefined = Coordinate.undefined()
    assert undefined == Coordinate(UNDEFINED_POSITION, UNDEFINED_POSITION)
    assert not undefined.is_valid()
    assert undefined.to_native_square() is None
    assert undefined.to_algebraic() is None


@pytest.mark.parametrize("row, col", [(8, 0), (0, 8), (-1, 3), (3, -1), (10, 10)])
def test_out_of_range(row: int, col: int) -> None:
    coord = Coordinate(row, col)
    assert not coord.is_valid()
    assert coord.to_native_square() is None
    assert Coordinate.opt_new(row, col) is None


def test_opt_new_inside_the_board() -> None:
    assert Coordinate.opt_new(3, 5) == Coordinate(3, 5)


@pytest.mark.parametrize(
    "coord, reversed_coord",
    [
        (Coordinate(0, 0), Coordinate(7, 7)),
        (Coordinate(6, 4), Coordinate(1, 3)),
        (Coordinate(3, 4), Coordinate(4, 3)),
    ],
)
def test_reverse(coord: Coordinate, reversed_coord: Coordinate) -> None:
    assert coord.reverse() == reversed_coord
    assert coord.reverse().reverse() == coord


def test_reverse_keeps_undefined() -> None:
    assert Coordinate.undefined().reverse() == Coordinate.undefined()


def test_lexicographic_ordering() -> None:
    assert Coordinate(0, 7) < Coordinate(1, 0)
    assert Coordinate(2, 3) < Coordinate(2, 4)
    assert sorted([Coordinate(1, 1), Coordinate(0, 5), Coordinate(1, 0)]) == [
        Coordinate(0, 5),
        Coordinate(1, 0),
        Coordinate(1, 1),
    ]
