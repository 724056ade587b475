"""Durable key/value blob stores.

The collection and the theme preference are kept in two named string
slots.  Callers receive a store explicitly so the collection logic can be
exercised against :class:`MemoryBlobStore` without a database.
"""

from __future__ import annotations

import sqlite3
from typing import Protocol

import database.models as models

COLLECTION_KEY = "skus"
THEME_KEY = "theme"


class BlobStore(Protocol):
    """String-keyed slots holding string values."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class SqliteBlobStore:
    """Blob store backed by the ``kv_store`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: str) -> str | None:
        return models.get_value(self._conn, key)

    def set(self, key: str, value: str) -> None:
        models.set_value(self._conn, key, value)


class MemoryBlobStore:
    """In-process blob store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
