"""
Load games written in PGN (Portable Game Notation): tag pairs, then the moves in SAN.

    [Event "Casual game"]
    [Result "*"]

    1. e4 e5 2. Nf3 {develops} Nc6 *

Only the main line is replayed. Comments, variations, NAGs and move numbers are skipped.
Every SAN move is resolved against the legal moves of the position and applied through the GameBoard.
"""

import logging
import re
from dataclasses import dataclass, field
from string import ascii_lowercase
from typing import Optional

from src.chess.castling import CastlingDirection
from src.chess.game_board import GameBoard
from src.chess.moves import Move
from src.chess.pieces import Color, PieceType
from src.chess.square import Square
from src.core.exceptions import IllegalMoveError, InvalidPGNError

_LOGGER = logging.getLogger(__name__)

_TAG_PAIR_RE = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]$')
_MOVE_NUMBER_RE = re.compile(r"\d+\.(?:\.\.)?")
# piece, file / rank to tell two candidates apart, capture, target square, promotion
_SAN_RE = re.compile(r"^([NBRQK])?([a-h])?([1-8])?x?([a-h][1-8])(?:=?([NBRQ]))?$")

RESULT_TOKENS = frozenset({"1-0", "0-1", "1/2-1/2", "*"})

_CASTLING_SAN: dict[str, tuple[CastlingDirection, ...]] = {
    "O-O": (CastlingDirection.WHITE_KING_SIDE, CastlingDirection.BLACK_KING_SIDE),
    "O-O-O": (CastlingDirection.WHITE_QUEEN_SIDE, CastlingDirection.BLACK_QUEEN_SIDE),
}


@dataclass
class PgnGame:
    tags: dict[str, str] = field(default_factory=dict)
    san_moves: list[str] = field(default_factory=list)
    result: str = "*"

    @property
    def starting_fen(self) -> Optional[str]:
        """A game set up from a custom position carries it in the FEN tag"""
        if self.tags.get("SetUp") == "1" or "FEN" in self.tags:
            return self.tags.get("FEN")
        return None


def parse_pgn(text: str) -> PgnGame:
    """Split a single game into its tag pairs, its SAN moves and the result token"""
    game = PgnGame()
    movetext_lines: list[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("%"):
            continue
        if line.startswith("[") and not movetext_lines:
            match = _TAG_PAIR_RE.match(line)
            if match is None:
                raise InvalidPGNError(f"Invalid tag pair: {line}")
            name, value = match.groups()
            game.tags[name] = value.replace('\\"', '"').replace("\\\\", "\\")
            continue
        # a ';' comment runs until the end of the line
        movetext_lines.append(line.split(";", 1)[0])

    movetext = re.sub(r"\{[^}]*\}", " ", " ".join(movetext_lines))
    previous = None
    while previous != movetext:
        # innermost variations first
        previous = movetext
        movetext = re.sub(r"\([^()]*\)", " ", movetext)
    movetext = _MOVE_NUMBER_RE.sub(" ", movetext)

    for token in movetext.split():
        if token in RESULT_TOKENS:
            game.result = token
        elif token.startswith("$"):
            continue
        else:
            game.san_moves.append(token)
    return game


def san_to_move(game_board: GameBoard, san: str, color: Optional[Color] = None) -> Move:
    """
    Find the legal move a SAN token stands for.

    Raises IllegalMoveError when no legal move matches and InvalidPGNError when the token is unreadable or ambiguous.
    """
    color = color if color is not None else game_board.side_to_move()
    legal_moves = game_board.legal_moves(color)
    clean = san.rstrip("+#!?").replace("0", "O")

    if clean in _CASTLING_SAN:
        for move in legal_moves:
            if move.castling_direction in _CASTLING_SAN[clean]:
                return move
        raise IllegalMoveError(f"Castling not allowed: {san}")

    match = _SAN_RE.match(clean)
    if match is None:
        raise InvalidPGNError(f"Not a move in SAN: {san!r}")
    piece_letter, from_file, from_rank, target, promotion_letter = match.groups()
    piece_type = PieceType(piece_letter.lower()) if piece_letter else PieceType.PAWN
    promotion = PieceType(promotion_letter.lower()) if promotion_letter else None
    to_square = Square.from_algebraic(target)

    candidates: list[Move] = []
    for move in legal_moves:
        piece = game_board.board.piece(move.from_square)
        if piece is None or piece.type != piece_type:
            continue
        if move.to_square != to_square or move.castling_direction is not None:
            continue
        if move.promote_to != promotion:
            continue
        if from_file is not None and move.from_square.file != ascii_lowercase.index(from_file) + 1:
            continue
        if from_rank is not None and move.from_square.rank != int(from_rank):
            continue
        candidates.append(move)

    if not candidates:
        raise IllegalMoveError(f"Move not allowed: {san}")
    if len(candidates) > 1:
        raise InvalidPGNError(f"Ambiguous move: {san}")
    return candidates[0]


def replay_pgn(text: str) -> GameBoard:
    """Play the main line of a PGN game from its starting position. The side to move follows from the board."""
    pgn_game = parse_pgn(text)
    starting_fen = pgn_game.starting_fen
    game_board = GameBoard.from_fen(starting_fen) if starting_fen else GameBoard()
    for san in pgn_game.san_moves:
        game_board.execute_uci(san_to_move(game_board, san).to_uci())
    _LOGGER.info(
        "Loaded PGN game with %d moves, %s to move",
        len(pgn_game.san_moves),
        game_board.side_to_move().name.lower(),
    )
    return game_board
