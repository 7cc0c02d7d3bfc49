from __future__ import annotations

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from .config import ACQUIRE_TIMEOUT_SECS, DATABASE_URL, IDLE_TIMEOUT_SECS, MAX_CONNECTIONS, MIN_CONNECTIONS

logger = logging.getLogger(__name__)


def _enable_sqlite_fks(dbapi_conn, _record) -> None:
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


def get_engine(url: str | None = None) -> Engine:
    url = url or DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL is required")

    # pool_size is the steady number of connections; anything above
    # MIN_CONNECTIONS up to MAX_CONNECTIONS is overflow.
    pool_size = max(1, min(MIN_CONNECTIONS, MAX_CONNECTIONS))
    kwargs = dict(
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=max(0, MAX_CONNECTIONS - pool_size),
        pool_timeout=ACQUIRE_TIMEOUT_SECS,
        pool_recycle=IDLE_TIMEOUT_SECS,
    )
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # in-memory databases live in a single connection
            for key in ("pool_size", "max_overflow", "pool_timeout", "pool_recycle"):
                kwargs.pop(key)

    logger.info("Creating engine (pool %d..%d connections)", pool_size, MAX_CONNECTIONS)
    engine = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_fks)
    return engine
