"""
Database connection utilities.

One engine is shared by every worker of a run and created on first use, so
importing the collector does not need the database driver (tests pass their
own SQLite engines instead).
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine

from gazette_collector.core.config import DATABASE_URL

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def get_engine(database_url: str = DATABASE_URL) -> Engine:
    """
    Return the shared engine, creating it on the first call.

    Connections are pinged before use since a run can sit idle on a long
    PDF wait.
    """
    global _engine
    if _engine is None:
        _engine = create_engine(database_url, pool_pre_ping=True)
        logger.debug(f"Created database engine for {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def dispose_engine() -> None:
    """Close the pooled connections of the shared engine and forget it."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None


@contextmanager
def get_db_connection(engine: Optional[Engine] = None) -> Iterator[Connection]:
    """
    Open a connection on the given engine, or on the shared one.

    Example:
        with get_db_connection() as conn:
            conn.execute(text("SELECT 1"))
    """
    with (engine or get_engine()).connect() as conn:
        yield conn


def check_db_connection(engine: Optional[Engine] = None) -> bool:
    """
    Run a trivial query to see whether the database answers.

    Returns:
        True if the query succeeded, False otherwise (the error is logged)
    """
    try:
        with get_db_connection(engine) as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
    logger.info("Database connection successful")
    return True
