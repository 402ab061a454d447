"""Key/value storage substrates.

The project store only needs string get/set/remove. ``MemoryStorage`` keeps
everything in-process; ``SqlStorage`` persists to a single SQLAlchemy table.
Both raise ``StorageError`` (and nothing else) when the substrate fails.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from sqlalchemy import Engine, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from agro_canvas.database import create_tables, get_engine
from agro_canvas.models import StorageEntry

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The storage substrate is unavailable or rejected the operation."""


class StorageQuotaExceededError(StorageError):
    """A write would exceed the substrate's capacity."""


class KeyValueStorage(Protocol):
    """String key/value substrate."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage with an optional byte quota."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for {key} must be a string")
        if self.quota_bytes is not None:
            used = sum(
                _entry_size(k, v) for k, v in self._items.items() if k != key
            )
            if used + _entry_size(key, value) > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Writing {key} would exceed the {self.quota_bytes} byte quota"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class SqlStorage:
    """Storage backed by the ``storage_entries`` table."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)
        try:
            create_tables(self._engine)
        except SQLAlchemyError as e:
            logger.error("Could not create storage tables: %s", e)
            raise StorageError("Storage database is unavailable") from e

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.warning("Storage operation failed: %s", e)
            raise StorageError(str(e)) from e

    def get_item(self, key: str) -> str | None:
        with self._session() as session:
            entry = session.get(StorageEntry, key)
            return entry.value if entry is not None else None

    def set_item(self, key: str, value: str) -> None:
        with self._session() as session:
            session.merge(StorageEntry(key=key, value=value))

    def remove_item(self, key: str) -> None:
        with self._session() as session:
            session.execute(delete(StorageEntry).where(StorageEntry.key == key))
