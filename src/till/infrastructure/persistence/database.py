"""Engine construction and error translation for the SQL store.

The engine is the one process-wide handle on the database. It is built
once by the composition root, passed into every repository, and
disposed at shutdown.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from till.domain.exceptions import StoreError
from till.infrastructure.persistence.schema import metadata

logger = logging.getLogger(__name__)


def open_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for *database_url*.

    SQLite gets foreign keys switched on (the line cascade depends on
    them); in-memory SQLite shares one connection across threads.
    """
    url = make_url(database_url)
    kwargs: dict = {"echo": echo, "pool_pre_ping": True}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, **kwargs)

    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    logger.debug("Opened engine for %s", url.render_as_string(hide_password=True))
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_schema(engine: Engine) -> None:
    """Create any missing tables and indexes."""
    with store_errors():
        metadata.create_all(engine)


@contextmanager
def store_errors():
    """Re-raise driver failures as ``StoreError``.

    Usable as a decorator on repository methods.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store operation failed: %s", exc)
        raise StoreError(f"Store operation failed: {exc.__class__.__name__}") from exc
