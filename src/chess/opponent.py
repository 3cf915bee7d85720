"""
The (optional) opponent attached to a Game.

Exactly zero or one opponent is active: the Game dispatches on the variant below.
The Game only knows the small protocols defined here. The network and engine implementations live in src/network.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from src.chess.pieces import Color


class MoveEngine(Protocol):
    """A chess engine that answers a position with its best move (UCI text)"""

    def best_move(self, fen: str) -> str:
        """Raises EngineUnavailableError if the engine cannot answer."""
        ...


class MovePeer(Protocol):
    """The other player, connected over the network"""

    def send_move(self, move_text: str) -> None:
        """Raises TransportError if the move cannot be delivered."""
        ...

    def poll_move(self) -> Optional[str]:
        """Non-blocking: the next move received (in order), or None if nothing arrived yet.
        Raises TransportError once the session ended."""
        ...

    def send_end(self) -> None: ...


@dataclass(frozen=True)
class NoOpponent:
    """Both sides are played at this terminal."""


@dataclass(frozen=True)
class EngineOpponent:
    engine: MoveEngine
    color: Color


@dataclass(frozen=True)
class NetworkOpponent:
    peer: MovePeer
    color: Color
    # the host of the listening endpoint is network-authoritative
    is_server: bool = False


Opponent = NoOpponent | EngineOpponent | NetworkOpponent


def opponent_color(opponent: Opponent) -> Optional[Color]:
    if isinstance(opponent, (EngineOpponent, NetworkOpponent)):
        return opponent.color
    return None


def opponent_kind(opponent: Opponent) -> str:
    """Short name to store with an archived game"""
    if isinstance(opponent, EngineOpponent):
        return "engine"
    if isinstance(opponent, NetworkOpponent):
        return "network"
    return "none"
