"""
Custom exceptions used across layers.

Everything derives from GameError, so a caller that only cares about "something went wrong with the game" can catch one type.
"""


class GameError(Exception):
    """Base class for all errors raised by this package."""


# --- RULES / STATE MACHINE ---
class IllegalMoveError(GameError):
    """The requested move is not allowed. The board is left untouched."""


class GameStateError(GameError):
    """The game is not in a state that accepts the request (finished, waiting for the opponent, bad setup...)."""


class InvalidFENError(GameError):
    """String could not be interpreted as FEN."""


class InvalidPGNError(GameError):
    """PGN text could not be read (bad header, unknown move token, ambiguous move)."""


# --- PEER SYNCHRONIZATION ---
class TransportError(GameError):
    """Reading from / writing to the network stream failed. Fatal for that peer's session only."""


class ProtocolParseError(GameError):
    """Inbound text could not be interpreted. The message is dropped."""


class EngineUnavailableError(GameError):
    """The chess engine process is missing, crashed or stopped answering."""


# --- AMBIENT ---
class RepositoryError(GameError):
    """Game record could not be found / stored."""


class ConfigError(GameError):
    """Configuration file exists but cannot be used."""
