"""GameRepository backed by a SQLAlchemy session"""

import logging
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError
from src.core.models import GameModel
from src.db.schema import DBGame

_LOGGER = logging.getLogger(__name__)


class SQLGameRepository:
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        record = DBGame(id=uuid4())
        _fill_record(record, game)
        self.db.add(record)
        self._commit(f"archive game {record.id}")
        self.db.refresh(record)
        return _to_model(record), record.id

    def get_game(self, game_id: UUID) -> GameModel | None:
        record = self.db.get(DBGame, game_id)
        return _to_model(record) if record is not None else None

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        record = self.db.get(DBGame, game_id)
        if record is None:
            return None
        _fill_record(record, game)
        self._commit(f"update game {game_id}")
        self.db.refresh(record)
        return _to_model(record)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        record = self.db.get(DBGame, game_id)
        if record is None:
            return None
        removed = _to_model(record)
        self.db.delete(record)
        self._commit(f"delete game {game_id}")
        return removed

    def list_games(self) -> list[tuple[UUID, GameModel]]:
        records = self.db.scalars(select(DBGame).order_by(DBGame.created_at))
        return [(record.id, _to_model(record)) for record in records]

    def _commit(self, action: str) -> None:
        """Commit, or roll back and raise RepositoryError so the session stays usable"""
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            _LOGGER.error("Could not %s: %s", action, exc)
            raise RepositoryError(f"Could not {action}") from exc


def _fill_record(record: DBGame, game: GameModel) -> None:
    # JSON columns only notice re-assignment, so store fresh lists
    record.current_fen = game.current_fen
    record.history_fen = list(game.history_fen)
    record.moves_uci = list(game.moves_uci)
    record.status = game.status
    record.opponent = game.opponent
    record.winner = game.winner


def _to_model(record: DBGame) -> GameModel:
    return GameModel(
        current_fen=record.current_fen,
        history_fen=list(record.history_fen),
        moves_uci=list(record.moves_uci),
        status=record.status,
        opponent=record.opponent,
        winner=record.winner,
    )
