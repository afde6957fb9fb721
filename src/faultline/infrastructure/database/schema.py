"""SQLAlchemy Core table definitions for the faultline settings store."""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, Table, Text

metadata = MetaData()

settings_snapshots = Table(
    "settings_snapshots",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("version", Integer, nullable=False),
    Column("settings", Text, nullable=False),  # JSON object
    Column("created", Text, nullable=False),
)
