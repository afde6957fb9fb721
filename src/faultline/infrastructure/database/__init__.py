"""SQLite settings store engine and schema via SQLAlchemy Core."""

from faultline.infrastructure.database.engine import create_db_engine, init_database
from faultline.infrastructure.database.schema import metadata, settings_snapshots

__all__ = ["create_db_engine", "init_database", "metadata", "settings_snapshots"]
