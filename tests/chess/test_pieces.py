"""Unit tests for /src/chess/pieces.py"""

from dataclasses import FrozenInstanceError

import pytest

from src.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Color, Piece, PieceType


@pytest.mark.parametrize("char", list("PNBRQK"))
def test_creating_white_piece_from_fen(char: str) -> None:
    """Capital letters are used for white pieces"""
    piece = Piece.from_fen(char)
    assert piece.type == FEN_TO_PIECE[char.lower()]
    assert piece.color == Color.WHITE


@pytest.mark.parametrize("char", list("pnbrqk"))
def test_creating_black_piece_from_fen(char: str) -> None:
    """Lower case letters are used for black pieces"""
    piece = Piece.from_fen(char)
    assert piece.type == FEN_TO_PIECE[char]
    assert piece.color == Color.BLACK


@pytest.mark.parametrize("piece_type", list(PieceType))
def test_pieces_to_fen(piece_type: PieceType) -> None:
    assert Piece(piece_type, Color.WHITE).to_fen() == PIECE_TO_FEN[piece_type].upper()
    assert Piece(piece_type, Color.BLACK).to_fen() == PIECE_TO_FEN[piece_type]


@pytest.mark.parametrize("color", list(Color))
def test_promotion_replaces_the_piece(color: Color) -> None:
    """Pieces are immutable: promoting gives a new piece of the same color"""
    pawn = Piece(PieceType.PAWN, color)
    queen = pawn.promoted_to(PieceType.QUEEN)
    assert queen == Piece(PieceType.QUEEN, color)
    assert pawn.type == PieceType.PAWN

    with pytest.raises(FrozenInstanceError):
        pawn.type = PieceType.QUEEN  # type: ignore[misc]


def test_color_helpers() -> None:
    assert Color.WHITE.opposite == Color.BLACK
    assert Color.BLACK.opposite == Color.WHITE
    assert Color.WHITE.to_fen() == "w"
    assert Color.from_fen("b") == Color.BLACK
