"""
Database connection management for Cidian.

Provides engine and session creation for the SQLite dictionary database.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from cidian.db.models import Base
from cidian.settings import DB_PATH

logger = logging.getLogger(__name__)

# One engine per database URL
_engines: Dict[str, Engine] = {}


def get_db_path() -> Optional[str]:
    """Return the configured database path if the file exists."""
    if DB_PATH.exists():
        return str(DB_PATH)
    return None


def _database_url(db_path: Union[str, Path, None]) -> str:
    if db_path is None or str(db_path) == ":memory:":
        return "sqlite://"
    return f"sqlite:///{Path(db_path)}"


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA synchronous = NORMAL")
    cursor.close()


def get_engine(db_path: Union[str, Path, None] = None) -> Engine:
    """
    Get (or create) the engine for a database file.

    Args:
        db_path: SQLite file path. None or ':memory:' gives an in-memory
            database, which is private to the returned engine.

    Returns:
        SQLAlchemy engine.
    """
    url = _database_url(db_path)
    if url == "sqlite://":
        engine = create_engine(url)
        event.listen(engine, "connect", _set_sqlite_pragmas)
        return engine

    engine = _engines.get(url)
    if engine is None:
        engine = create_engine(url)
        event.listen(engine, "connect", _set_sqlite_pragmas)
        _engines[url] = engine
        logger.debug("Created engine for %s", url)
    return engine


def create_schema(engine: Engine) -> None:
    """Create all tables if they don't exist."""
    Base.metadata.create_all(engine)


def get_session(db_path: Union[str, Path, None] = None, engine: Optional[Engine] = None) -> Session:
    """
    Open a session on the dictionary database.

    Args:
        db_path: SQLite file path. Defaults to settings.DB_PATH.
        engine: Use this engine instead of resolving one from db_path.

    Returns:
        New Session; the caller closes it.

    Raises:
        FileNotFoundError: If db_path points to a missing file.
    """
    if engine is None:
        if db_path is None:
            db_path = DB_PATH
        if str(db_path) != ":memory:" and not Path(db_path).exists():
            raise FileNotFoundError(f"Database not found: {db_path}")
        engine = get_engine(db_path)

    factory = sessionmaker(bind=engine, autoflush=False)
    return factory()


def dispose_engines() -> None:
    """Close all pooled connections."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()
