"""Unit tests for src/chess/pgn.py"""

import pytest

from src.chess.game_board import GameBoard
from src.chess.pgn import parse_pgn, replay_pgn, san_to_move
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square
from src.core.exceptions import IllegalMoveError, InvalidFENError, InvalidPGNError

SAMPLE_GAME = """
[Event "Casual game"]
[White "Alice"]
[Black "Bob \\"the rook\\" Smith"]
[Result "*"]

1. e4 e5 2. Nf3 {the usual} Nc6 3. Bb5 (3. Bc4 Bc5) a6 $1 ; Morphy defence
4. Ba4 *
"""


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


# --- PARSING ---
def test_parse_tags_and_moves() -> None:
    pgn_game = parse_pgn(SAMPLE_GAME)
    assert pgn_game.tags["Event"] == "Casual game"
    assert pgn_game.tags["Black"] == 'Bob "the rook" Smith'
    assert pgn_game.san_moves == ["e4", "e5", "Nf3", "Nc6", "Bb5", "a6", "Ba4"]
    assert pgn_game.result == "*"
    assert pgn_game.starting_fen is None


def test_parse_movetext_only() -> None:
    pgn_game = parse_pgn("1.e4 e5 2.Nf3 Nc6 3...a6 1-0")
    assert pgn_game.tags == {}
    assert pgn_game.san_moves == ["e4", "e5", "Nf3", "Nc6", "a6"]
    assert pgn_game.result == "1-0"


def test_nested_variations_are_skipped() -> None:
    pgn_game = parse_pgn("1. e4 (1. d4 d5 (1... Nf6 2. c4)) e5 1/2-1/2")
    assert pgn_game.san_moves == ["e4", "e5"]
    assert pgn_game.result == "1/2-1/2"


def test_invalid_tag_pair() -> None:
    with pytest.raises(InvalidPGNError):
        parse_pgn('[Event "unterminated]\n\n1. e4 *')


# --- SAN ---
@pytest.mark.parametrize(
    "san, uci",
    [
        ("e4", "e2e4"),
        ("Nf3", "g1f3"),
        ("Nc3+", "b1c3"),
        ("e3!?", "e2e3"),
    ],
)
def test_san_from_the_start(san: str, uci: str) -> None:
    assert san_to_move(GameBoard(), san).to_uci() == uci


def test_disambiguation_by_file_and_rank() -> None:
    game_board = GameBoard.from_fen("4k3/8/8/8/8/8/4K3/R6R w - - 0 1")
    assert san_to_move(game_board, "Rad1").from_square == sq("a1")
    assert san_to_move(game_board, "Rhd1").from_square == sq("h1")
    with pytest.raises(InvalidPGNError):
        san_to_move(game_board, "Rd1")

    game_board = GameBoard.from_fen("R7/8/7k/8/8/8/8/R3K3 w - - 0 1")
    assert san_to_move(game_board, "R1a4").from_square == sq("a1")
    assert san_to_move(game_board, "R8a4").from_square == sq("a8")


def test_castling_san() -> None:
    game_board = GameBoard.from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    move = san_to_move(game_board, "O-O-O")
    assert move.to_uci() == "e8c8"
    assert move.castling_direction is not None
    assert san_to_move(game_board, "0-0").to_uci() == "e8g8"


def test_promotion_san() -> None:
    game_board = GameBoard.from_fen("1n5k/P7/8/8/8/8/8/K7 w - - 0 1")
    assert san_to_move(game_board, "a8=Q").to_uci() == "a7a8q"
    assert san_to_move(game_board, "axb8=N+").to_uci() == "a7b8n"


@pytest.mark.parametrize("san", ["e5", "Ke2", "O-O", "a8=Q"])
def test_illegal_san(san: str) -> None:
    with pytest.raises(IllegalMoveError):
        san_to_move(GameBoard(), san)


@pytest.mark.parametrize("san", ["hello", "Zf3", "e9"])
def test_unreadable_san(san: str) -> None:
    with pytest.raises(InvalidPGNError):
        san_to_move(GameBoard(), san)


# --- REPLAY ---
def test_replay_four_moves() -> None:
    game_board = replay_pgn("1. e4 e5 2. Nf3 Nc6")
    assert len(game_board.move_history) == 4
    assert game_board.side_to_move() == Color.WHITE
    assert game_board.board.piece(sq("c6")) == Piece(PieceType.KNIGHT, Color.BLACK)


def test_replay_with_tags() -> None:
    game_board = replay_pgn(SAMPLE_GAME)
    assert len(game_board.move_history) == 7
    assert game_board.side_to_move() == Color.BLACK
    assert game_board.fen_position() == "r1bqkbnr/1ppp1ppp/p1n5/4p3/B3P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 1 4"


def test_replay_from_a_set_up_position() -> None:
    text = '[SetUp "1"]\n[FEN "4k3/8/8/8/8/8/8/R3K3 w Q - 0 40"]\n\n40. O-O-O Kf7 *'
    game_board = replay_pgn(text)
    assert game_board.board.piece(sq("d1")) == Piece(PieceType.ROOK, Color.WHITE)
    assert game_board.board.piece(sq("c1")) == Piece(PieceType.KING, Color.WHITE)
    assert game_board.fullmove_number() == 41


def test_replay_with_en_passant() -> None:
    game_board = replay_pgn("1. e4 a6 2. e5 d5 3. exd6")
    record = game_board.last_move
    assert record is not None and record.is_en_passant
    assert game_board.board.piece(sq("d5")) is None


def test_replay_stops_at_an_illegal_move() -> None:
    with pytest.raises(IllegalMoveError):
        replay_pgn("1. e4 e5 2. Ke3")


def test_replay_with_a_bad_fen_tag() -> None:
    with pytest.raises(InvalidFENError):
        replay_pgn('[SetUp "1"]\n[FEN "not a position"]\n\n*')
