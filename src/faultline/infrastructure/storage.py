"""Persistent storage for settings snapshots.

``get()`` returns stored items most recent first; ``save()`` appends a new
snapshot and drops anything beyond ``max_items``. Durability is whatever
the backend gives: the in-memory store loses everything on exit.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import delete, insert, select

from faultline.domain.models import VersionedSettings
from faultline.infrastructure.database.schema import settings_snapshots

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredItem:
    """A persisted snapshot and the time it was saved."""

    value: VersionedSettings
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@runtime_checkable
class SnapshotStore(Protocol):
    """Storage for versioned settings snapshots."""

    def get(self) -> list[StoredItem]:
        """Return stored snapshots, most recent first."""

    def save(self, value: VersionedSettings) -> None:
        """Persist *value* as the newest snapshot."""


@runtime_checkable
class Storage(Protocol):
    """Storage collaborator exposed on the configuration."""

    settings: SnapshotStore


class InMemorySnapshotStore:
    """Process-local snapshot store."""

    def __init__(self, max_items: int = 1) -> None:
        self._max_items = max_items
        self._items: list[StoredItem] = []

    def get(self) -> list[StoredItem]:
        return list(self._items)

    def save(self, value: VersionedSettings) -> None:
        self._items.insert(0, StoredItem(value=value))
        del self._items[self._max_items :]


class SqliteSnapshotStore:
    """Snapshot store backed by the ``settings_snapshots`` table."""

    def __init__(self, engine: Engine, max_items: int = 1) -> None:
        self._engine = engine
        self._max_items = max_items

    def get(self) -> list[StoredItem]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(
                    settings_snapshots.c.version,
                    settings_snapshots.c.settings,
                    settings_snapshots.c.created,
                )
                .order_by(settings_snapshots.c.id.desc())
                .limit(self._max_items)
            ).fetchall()

        items: list[StoredItem] = []
        for row in rows:
            try:
                value = VersionedSettings(version=row.version, settings=json.loads(row.settings))
            except ValueError:
                logger.warning("Skipping unreadable settings snapshot v%s", row.version)
                continue
            items.append(StoredItem(value=value, timestamp=datetime.fromisoformat(row.created)))
        return items

    def save(self, value: VersionedSettings) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                insert(settings_snapshots).values(
                    version=value.version,
                    settings=json.dumps(value.settings),
                    created=datetime.now(UTC).isoformat(),
                )
            )
            keep = (
                select(settings_snapshots.c.id)
                .order_by(settings_snapshots.c.id.desc())
                .limit(self._max_items)
            )
            conn.execute(delete(settings_snapshots).where(settings_snapshots.c.id.not_in(keep)))


class InMemoryStorage:
    """Storage with an in-memory settings store."""

    def __init__(self, max_items: int = 1) -> None:
        self.settings: SnapshotStore = InMemorySnapshotStore(max_items)


class SqliteStorage:
    """Storage with a SQLite settings store under *storage_dir*."""

    def __init__(self, storage_dir: Path, max_items: int = 1) -> None:
        from faultline.infrastructure.database.engine import init_database

        self._engine = init_database(storage_dir)
        self.settings: SnapshotStore = SqliteSnapshotStore(self._engine, max_items)

    def close(self) -> None:
        self._engine.dispose()
