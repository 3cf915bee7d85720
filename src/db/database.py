"""Generate database sessions for the game archive"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.core.exceptions import RepositoryError
from src.db.schema import Base

_LOGGER = logging.getLogger(__name__)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Connect to the database and make sure all tables exist"""
    # sqlite connections are shared with the network threads
    connect_args = (
        {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    )
    try:
        engine = create_engine(database_url, connect_args=connect_args)
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        raise RepositoryError(f"Cannot open game archive {database_url}: {exc}") from exc
    _LOGGER.info("Game archive ready at %s", engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine)
