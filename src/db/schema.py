"""Tables of the game archive"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import JSON, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    """One archived game: final position, full history and how it ended"""

    __tablename__ = "archived_games"

    id: Mapped[UUID] = mapped_column(primary_key=True)
    current_fen: Mapped[str] = mapped_column(String(100))
    # FEN after every ply, starting position first
    history_fen: Mapped[list[str]] = mapped_column(JSON, default=list)
    moves_uci: Mapped[list[str]] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(String(32))
    opponent: Mapped[str] = mapped_column(String(16), default="none")
    # None while undecided and for draws
    winner: Mapped[Optional[str]] = mapped_column(String(8))
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
