"""Unit tests for /src/chess/board.py"""

from contextlib import AbstractContextManager
from typing import Any, Callable
from unittest.mock import Mock, patch

import pytest

from src.chess.board import EMPTY_POSITION, STARTING_POSITION, Board
from src.chess.coord import Coordinate
from src.chess.moves import Move
from src.chess.pieces import PIECE_TO_FEN, Color, Piece, PieceType
from src.chess.square import Square

PatchContext = AbstractContextManager[Any]


@pytest.fixture
def board_with_single_piece() -> Callable[[PieceType, Color, str], Board]:
    """Factory: an otherwise empty board with one piece on the given square"""

    def _create_board(piece_type: PieceType, color: Color, square_name: str = "d4") -> Board:
        board = Board.from_fen(EMPTY_POSITION)
        board.place_piece(Piece(piece_type, color), Square.from_algebraic(square_name))
        return board

    return _create_board


@pytest.fixture
def patch_candidate_move_functions() -> Callable[[Any], tuple[PatchContext, dict[PieceType, Mock]]]:
    """Factory: replaces every movement rule with a Mock returning `return_value`"""

    def _patch_functions(return_value: Any) -> tuple[PatchContext, dict[PieceType, Mock]]:
        mock_rules = {piece_type: Mock(return_value=return_value) for piece_type in PieceType}
        ctx = patch.dict("src.chess.board.MOVEMENT_RULES", mock_rules)
        return ctx, mock_rules

    return _patch_functions


# -- CREATION LOGIC ---
def test_creating_board_in_starting_position() -> None:
    """Make sure board position is correctly initialized using a partial FEN string"""
    board = Board.from_fen(STARTING_POSITION)

    back_rank = [
        PieceType.ROOK,
        PieceType.KNIGHT,
        PieceType.BISHOP,
        PieceType.QUEEN,
        PieceType.KING,
        PieceType.BISHOP,
        PieceType.KNIGHT,
        PieceType.ROOK,
    ]
    for file, piece_type in enumerate(back_rank, start=1):
        assert board.piece(Square(file, 1)) == Piece(piece_type, Color.WHITE)
        assert board.piece(Square(file, 2)) == Piece(PieceType.PAWN, Color.WHITE)
        assert board.piece(Square(file, 7)) == Piece(PieceType.PAWN, Color.BLACK)
        assert board.piece(Square(file, 8)) == Piece(piece_type, Color.BLACK)

    # 6th, 5th, 4th, 3rd ranks all empty
    for rank in range(3, 7):
        for file in range(1, 9):
            assert board.piece(Square(file, rank)) is None
    assert len(board.position) == 32


def test_creating_board_after_e4() -> None:
    board = Board.from_fen("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR")
    assert board.piece(Square.from_algebraic("e4")) == Piece(PieceType.PAWN, Color.WHITE)
    assert board.piece(Square.from_algebraic("e2")) is None


def test_creating_empty_board() -> None:
    board = Board.from_fen(EMPTY_POSITION)
    assert board.position == {}


def test_indexing_by_square_and_coordinate() -> None:
    board = Board.starting_position()
    # row 7, col 4 is e1
    assert board[Coordinate(7, 4)] == Piece(PieceType.KING, Color.WHITE)
    assert board[Square.from_algebraic("d8")] == Piece(PieceType.QUEEN, Color.BLACK)
    assert board[Coordinate(4, 4)] is None
    assert board[Coordinate.undefined()] is None


def test_grid_round_trip() -> None:
    board = Board.starting_position()
    grid = board.to_grid()
    assert grid[0][0] == Piece(PieceType.ROOK, Color.BLACK)
    assert grid[7][4] == Piece(PieceType.KING, Color.WHITE)
    assert grid[3] == [None] * 8
    assert Board.from_grid(grid) == board


def test_grid_must_fit_on_the_board() -> None:
    grid: list[list[Piece | None]] = [[None] * 9 for _ in range(8)]
    grid[0][8] = Piece(PieceType.ROOK, Color.WHITE)
    with pytest.raises(ValueError):
        Board.from_grid(grid)


def test_copy_is_independent() -> None:
    board = Board.starting_position()
    copied = board.copy()
    copied.move_piece(Move.from_uci("e2e4"))
    assert board.piece(Square.from_algebraic("e2")) == Piece(PieceType.PAWN, Color.WHITE)
    assert copied.piece(Square.from_algebraic("e2")) is None


# --- LOCATING PIECES ---
def test_locating_pawns() -> None:
    board = Board.starting_position()
    pawns = board.locate_pieces(PieceType.PAWN, Color.WHITE)
    assert sorted(square.to_algebraic() for square in pawns) == [f"{file}2" for file in "abcdefgh"]


@pytest.mark.parametrize("color", list(Color))
def test_locating_color(color: Color) -> None:
    board = Board.starting_position()
    squares = board.locate_color(color)
    assert len(squares) == 16
    assert all(board.piece(square).color == color for square in squares)  # type: ignore[union-attr]


@pytest.mark.parametrize("color, king_square", [(Color.WHITE, "e1"), (Color.BLACK, "e8")])
def test_finding_the_king(color: Color, king_square: str) -> None:
    board = Board.starting_position()
    assert board.king_square(color) == Square.from_algebraic(king_square)


def test_no_king_on_the_board() -> None:
    board = Board.from_fen(EMPTY_POSITION)
    assert board.king_square(Color.WHITE) is None
    assert not board.is_check(Color.WHITE)


# --- PIECE MOVEMENTS / BOARD UPDATES ---
@pytest.mark.parametrize("uci_move", ["e2e4", "a1a5", "d2e4", "g8f6"])
def test_single_move_updates(uci_move: str) -> None:
    """The square it left is empty and the piece is now at the target square (no legality checks here)"""
    board = Board.starting_position()
    move = Move.from_uci(uci_move)
    moving_piece = board.piece(move.from_square)
    board.move_piece(move)
    assert board.piece(move.from_square) is None
    assert board.piece(move.to_square) == moving_piece


def test_making_a_series_of_moves() -> None:
    """Captured pieces are returned and the material is updated"""
    board = Board.starting_position()
    for uci in ["e2e4", "d7d5"]:
        assert board.move_piece(Move.from_uci(uci)) is None

    captured = board.move_piece(Move.from_uci("e4d5"))
    assert captured == Piece(PieceType.PAWN, Color.BLACK)
    assert len(board.locate_color(Color.BLACK)) == 15

    captures = [
        board.move_piece(Move.from_uci(uci))
        for uci in ["d8d5", "b1c3", "d5a2", "a1a2"]
    ]
    assert captures == [
        Piece(PieceType.PAWN, Color.WHITE),
        None,
        Piece(PieceType.PAWN, Color.WHITE),
        Piece(PieceType.QUEEN, Color.BLACK),
    ]
    assert board.piece(Square.from_algebraic("a2")) == Piece(PieceType.ROOK, Color.WHITE)


@pytest.mark.parametrize(
    "color, piece_type", [(color, piece_type) for color in Color for piece_type in PieceType]
)
def test_generating_candidate_moves(
    color: Color,
    piece_type: PieceType,
    board_with_single_piece: Callable[[PieceType, Color, str], Board],
    patch_candidate_move_functions: Callable[[Any], tuple[PatchContext, dict[PieceType, Mock]]],
) -> None:
    """Only the movement rule of the piece on the board gets asked for moves"""
    board = board_with_single_piece(piece_type, color, "d4")

    expected_return = [f"{piece_type.name.lower()}_move_list"]
    patch_ctx, mock_fns = patch_candidate_move_functions(expected_return)
    with patch_ctx:
        assert board.generate_candidate_moves(color) == expected_return
        assert board.generate_candidate_moves(color.opposite) == []

    for pt, mock_fn in mock_fns.items():
        if pt == piece_type:
            mock_fn.assert_called_once_with(Square.from_algebraic("d4"), board)
        else:
            mock_fn.assert_not_called()


def test_twenty_candidate_moves_at_the_start() -> None:
    board = Board.starting_position()
    assert len(board.generate_candidate_moves(Color.WHITE)) == 20
    assert len(board.generate_candidate_moves(Color.BLACK)) == 20


# -- ATTACK / CHECK DETECTION --
@pytest.mark.parametrize("color", list(Color))
def test_check_detection(color: Color) -> None:
    """Board.is_check() asks whether the opponent attacks the square of the king"""
    board = Board.starting_position()
    with patch("src.chess.board.is_square_attacked", return_value=True) as mock_attack:
        assert board.is_check(color)
        mock_attack.assert_called_once_with(board.king_square(color), color.opposite, board)


def test_check_by_queen() -> None:
    board = Board.from_fen("rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR")
    assert board.is_check(Color.WHITE)
    assert not board.is_check(Color.BLACK)


def test_any_under_attack() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/8/R3K3")
    squares = [Square.from_algebraic(name) for name in ["d8", "e8", "f8"]]
    assert board.is_any_under_attack(squares, Color.WHITE) is False
    squares.append(Square.from_algebraic("a8"))
    assert board.is_any_under_attack(squares, Color.WHITE)


# -- ENCODING BOARD IN FEN --
@pytest.mark.parametrize(
    "fen",
    [
        STARTING_POSITION,
        EMPTY_POSITION,
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR",
        "2kr1b1r/p1p1pppp/2p2n2/3q2B1/6Q1/2NP4/PPP2PPP/R4RK1",
    ],
)
def test_writing_board_to_fen(fen: str) -> None:
    board = Board.from_fen(fen)
    assert board.to_fen() == fen


def test_fen_letters_match_pieces() -> None:
    board = Board.from_fen(EMPTY_POSITION)
    board.place_piece(Piece(PieceType.KNIGHT, Color.WHITE), Square.from_algebraic("a1"))
    assert board.to_fen().endswith(f"{PIECE_TO_FEN[PieceType.KNIGHT].upper()}7")
