"""
How pieces move and attack, ignoring whose king ends up in check.

Every piece type gets its own candidate-move generator (MOVEMENT_RULES) and the attack checks are a list of
rules (ATTACK_RULES). Check safety, castling and en passant need the game history and live in the GameBoard.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Protocol, Self

from src.chess.castling import CastlingDirection
from src.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Optional[Piece]: ...


Vector = tuple[int, int]

KNIGHT_DELTAS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_DELTAS: list[Vector] = [
    (0, 1),
    (0, -1),
    (1, 0),
    (-1, 0),
    (1, 1),
    (1, -1),
    (-1, 1),
    (-1, -1),
]
DIAGONALS: list[Vector] = [(1, 1), (-1, 1), (1, -1), (-1, -1)]
STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]


@dataclass(frozen=True)
class Move:
    """A move as requested, before the GameBoard fills in castling / en passant"""

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None
    castling_direction: Optional[CastlingDirection] = None
    is_en_passant: bool = False

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Parse long algebraic (UCI) notation: origin, destination and an optional promotion letter,
        e.g. "g1f3", "e1g1" (castling is written as the king's own move) or "a7a8n".
        """
        promote_to = FEN_TO_PIECE[uci[4]] if len(uci) == 5 else None
        return cls(Square.from_algebraic(uci[:2]), Square.from_algebraic(uci[2:4]), promote_to=promote_to)

    def to_uci(self) -> str:
        suffix = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{suffix}"


@dataclass(frozen=True)
class MoveRecord:
    """
    Entry of the move history: an accepted move plus everything needed to replay / interpret it later
    (castling rights, en passant, the fifty-move counter and the list of taken pieces are all derived from these records).
    """

    piece_type: PieceType
    piece_color: Color
    from_square: Square
    to_square: Square
    captured: Optional[Piece] = None
    promotion: Optional[PieceType] = None
    castling: Optional[CastlingDirection] = None
    is_en_passant: bool = False

    @property
    def is_double_pawn_push(self) -> bool:
        return (
            self.piece_type == PieceType.PAWN
            and abs(self.to_square.rank - self.from_square.rank) == 2
        )

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    @property
    def resets_halfmove_clock(self) -> bool:
        return self.piece_type == PieceType.PAWN or self.is_capture

    def to_uci(self) -> str:
        piece_char = PIECE_TO_FEN[self.promotion] if self.promotion else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"


def pawn_direction(color: Color) -> int:
    """White moves UP the board, black moves DOWN"""
    return 1 if color == Color.WHITE else -1


def pawn_starting_rank(color: Color) -> int:
    return 2 if color == Color.WHITE else BOARD_DIMENSIONS[1] - 1


def promotion_rank(color: Color) -> int:
    return BOARD_DIMENSIONS[1] if color == Color.WHITE else 1


# --- MOVEMENT RULES ---
def ray(square: Square, direction: Vector, board: Board) -> Iterator[Square]:
    """Squares along `direction`, stopping at the board edge or right after the first occupied square"""
    df, dr = direction
    current = square.offset(df, dr)
    while current.is_within_bounds():
        yield current
        if board.piece(current) is not None:
            return
        current = current.offset(df, dr)


def raycasting_move(
    square: Square, board: Board, directions: list[Vector]
) -> list[Move]:
    """Sliding pieces: every square of every ray, the last one only when it holds an enemy piece"""
    mover = board.piece(square)
    assert mover is not None

    moves: list[Move] = []
    for direction in directions:
        for target in ray(square, direction, board):
            blocker = board.piece(target)
            if blocker is None or blocker.color != mover.color:
                moves.append(Move(from_square=square, to_square=target))
    return moves


def single_step_move(square: Square, board: Board, deltas: list[Vector]) -> list[Move]:
    """Kings and knights jump straight to square + delta, which must be empty or hold an enemy piece"""
    mover = board.piece(square)
    assert mover is not None

    targets = (square.offset(df, dr) for df, dr in deltas)
    return [
        Move(from_square=square, to_square=target)
        for target in targets
        if target.is_within_bounds() and _free_or_enemy(board.piece(target), mover.color)
    ]


def _free_or_enemy(occupant: Optional[Piece], color: Color) -> bool:
    return occupant is None or occupant.color != color


def candidate_pawn_moves(square: Square, board: Board) -> list[Move]:
    """
    Forward pushes onto empty squares (two at once from the starting rank) and diagonal captures.
    En passant and the promotion piece are added by the GameBoard.
    """
    pawn = board.piece(square)
    assert pawn is not None
    forward = pawn_direction(pawn.color)

    moves: list[Move] = []
    one_step = square.offset(0, forward)
    if one_step.is_within_bounds() and board.piece(one_step) is None:
        moves.append(Move(from_square=square, to_square=one_step))

        two_steps = square.offset(0, 2 * forward)
        if square.rank == pawn_starting_rank(pawn.color) and board.piece(two_steps) is None:
            moves.append(Move(from_square=square, to_square=two_steps))

    for side in (1, -1):
        diagonal = square.offset(side, forward)
        if not diagonal.is_within_bounds():
            continue
        victim = board.piece(diagonal)
        if victim is not None and victim.color != pawn.color:
            moves.append(Move(from_square=square, to_square=diagonal))
    return moves


def candidate_knight_moves(square: Square, board: Board) -> list[Move]:
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(square: Square, board: Board) -> list[Move]:
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Square, board: Board) -> list[Move]:
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Square, board: Board) -> list[Move]:
    return raycasting_move(square, board, DIAGONALS + STRAIGHTS)


def candidate_king_moves(square: Square, board: Board) -> list[Move]:
    """One step in any direction. Castling moves come from the GameBoard, which knows the history."""
    return single_step_move(square, board, KING_DELTAS)


CandidateMovesFn = Callable[[Square, Board], list[Move]]

# one move generator per piece type
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


# --- ATTACK RULES ---
# Attacks are looked for from the attacked square outwards: walk the rays / jumps a piece would use and
# see whether the right kind of enemy piece sits at the other end.
def raycasting_attack(
    square: Square,
    by_color: Color,
    by_piece_types: tuple[PieceType, ...],
    board: Board,
    directions: list[Vector],
) -> bool:
    """True when a ray from `square` ends on a `by_color` piece of one of `by_piece_types`"""
    for direction in directions:
        last_seen = None
        for target in ray(square, direction, board):
            last_seen = board.piece(target)
        if last_seen is not None and last_seen.color == by_color and last_seen.type in by_piece_types:
            return True
    return False


def single_step_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    deltas: list[Vector],
) -> bool:
    """True when a `by_color` piece of type `by_piece_type` stands on square + delta for one of the deltas"""
    attacker = Piece(by_piece_type, by_color)
    for df, dr in deltas:
        source = square.offset(df, dr)
        if source.is_within_bounds() and board.piece(source) == attacker:
            return True
    return False


def is_attacked_by_pawn(square: Square, by_color: Color, board: Board) -> bool:
    # an attacking pawn stands one rank behind the square, seen from its own side
    behind = -pawn_direction(by_color)
    return single_step_attack(
        square, by_color, PieceType.PAWN, board, [(1, behind), (-1, behind)]
    )


def is_attacked_by_knight(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KNIGHT, board, KNIGHT_DELTAS)


def is_attacked_by_king(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KING, board, KING_DELTAS)


def is_attacked_on_diagonal(square: Square, by_color: Color, board: Board) -> bool:
    return raycasting_attack(
        square, by_color, (PieceType.BISHOP, PieceType.QUEEN), board, DIAGONALS
    )


def is_attacked_on_straight(square: Square, by_color: Color, board: Board) -> bool:
    return raycasting_attack(
        square, by_color, (PieceType.ROOK, PieceType.QUEEN), board, STRAIGHTS
    )


IsAttackedFn = Callable[[Square, Color, Board], bool]
ATTACK_RULES: list[IsAttackedFn] = [
    is_attacked_by_pawn,
    is_attacked_by_knight,
    is_attacked_by_king,
    is_attacked_on_diagonal,
    is_attacked_on_straight,
]


def is_square_attacked(square: Square, by_color: Color, board: Board) -> bool:
    return any(rule(square, by_color, board) for rule in ATTACK_RULES)


# --- EN PASSANT ---
def en_passant_moves(
    en_passant_square: Square, color: Color, board: Board
) -> list[Move]:
    """Pawns of `color` that can take onto the en passant square: they sit beside the pawn that just moved two"""
    behind = -pawn_direction(color)
    own_pawn = Piece(PieceType.PAWN, color)

    moves: list[Move] = []
    for side in (-1, 1):
        source = en_passant_square.offset(side, behind)
        if source.is_within_bounds() and board.piece(source) == own_pawn:
            moves.append(
                Move(from_square=source, to_square=en_passant_square, is_en_passant=True)
            )
    return moves


# --- PROMOTION ---
PROMOTION_OPTIONS: list[PieceType] = [
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
]


def is_pawn_push_to_promotion_square(move: Move, board: Board) -> bool:
    mover = board.piece(move.from_square)
    if mover is None or mover.type != PieceType.PAWN:
        return False
    return move.to_square.rank == promotion_rank(mover.color)


def pawn_pushes_w_promotion(pawn_push: Move) -> list[Move]:
    """One move per piece the pawn may turn into"""
    return [
        Move(pawn_push.from_square, pawn_push.to_square, promote_to=piece_type)
        for piece_type in PROMOTION_OPTIONS
    ]
