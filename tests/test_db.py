"""tests/test_db.py"""
from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.pool import QueuePool

from webring import config
from webring.db import get_engine


def test_pool_settings(tmp_path):
    eng = get_engine(f"sqlite:///{tmp_path / 'pool.sqlite3'}")
    try:
        pool = eng.pool
        assert isinstance(pool, QueuePool)
        assert pool.size() == config.MIN_CONNECTIONS == 5
        assert pool.timeout() == config.ACQUIRE_TIMEOUT_SECS == 10
        assert pool._recycle == config.IDLE_TIMEOUT_SECS == 300
        assert pool._max_overflow == config.MAX_CONNECTIONS - config.MIN_CONNECTIONS
        assert pool._pre_ping is True
    finally:
        eng.dispose()


def test_sqlite_foreign_keys_are_enforced(tmp_path):
    eng = get_engine(f"sqlite:///{tmp_path / 'fk.sqlite3'}")
    try:
        with eng.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar_one() == 1
    finally:
        eng.dispose()
