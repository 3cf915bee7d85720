"""
Boundary layer data model(s).

These objects are used to communicate with the Service.
Hence, both the domain layer and the db layer use the model defined here to send to / receive from the Service
(decouples the data model specific to the DB layer or the domain layer from the information needed to cross boundaries)
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class GameModel:
    """Transport-safe representation of a chess game used between Service, DB, and Game layers."""

    current_fen: str
    history_fen: list[str]
    moves_uci: list[str]
    status: str
    opponent: str = "none"
    winner: Optional[str] = None
