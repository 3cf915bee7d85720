"""The archive as seen by the session layer: any store that can keep GameModel records under a UUID will do"""

from typing import Protocol
from uuid import UUID

from src.core.models import GameModel


class GameRepository(Protocol):
    """Archive of played games. Lookups of unknown IDs return None instead of raising."""

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Archive a game. Returns what was stored and the ID it was stored under."""
        ...

    def get_game(self, game_id: UUID) -> GameModel | None: ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite an archived game, e.g. when an abandoned game was resumed and finished later."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Forget a game, returning the record as it was."""
        ...

    def list_games(self) -> list[tuple[UUID, GameModel]]:
        """Everything in the archive, oldest first."""
        ...
