"""Database engine setup for SQLite with WAL mode.

The settings cache lives at ``{storage_dir}/faultline.db`` so a restarted
process can apply the last server settings without a network round-trip.
SQLAlchemy Core (not ORM): the store holds a single small table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from faultline.infrastructure.database.schema import metadata

DB_FILENAME = "faultline.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_database(storage_dir: Path) -> Engine:
    """Create ``storage_dir`` and the settings tables if missing.

    Idempotent — safe to call on every startup.
    """
    storage_dir.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(storage_dir / DB_FILENAME)
    metadata.create_all(engine)
    return engine
