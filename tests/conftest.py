"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from collections.abc import Generator

import pytest

from database.connection import apply_schema
from services.sku_collection import FormInputs, GenerationConfig, SkuRecord, generate_batch
from services.storage import MemoryBlobStore
from utils.sku import AttributeRule


class _NoCloseConnection:
    """Wrapper around a sqlite3.Connection that ignores .close() calls.

    This keeps the shared in-memory test fixture alive across the
    per-request connection teardown.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        object.__setattr__(self, "_conn", conn)

    def close(self) -> None:  # noqa: D102
        pass  # intentionally do nothing

    def __getattr__(self, name: str) -> object:
        return getattr(self._conn, name)

    def __setattr__(self, name: str, value: object) -> None:
        setattr(self._conn, name, value)


@pytest.fixture
def db() -> Generator[sqlite3.Connection, None, None]:
    """In-memory SQLite database with the full schema applied."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def store() -> MemoryBlobStore:
    """Empty in-process blob store."""
    return MemoryBlobStore()


@pytest.fixture
def client(db: sqlite3.Connection, monkeypatch: pytest.MonkeyPatch):
    """Flask test client wired to the in-memory database."""
    from api.app import create_app

    wrapper = _NoCloseConnection(db)
    monkeypatch.setattr("api.routes.get_db", lambda _path: wrapper)
    app = create_app()
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


@pytest.fixture
def denim_jacket_records() -> list[SkuRecord]:
    """Fall Winter 2024 denim jacket in M and L (FAL24-DEN-BLU-M, FAL24-DEN-BLU-L)."""
    return generate_batch(
        FormInputs(
            product="Fall Winter",
            year="2024",
            attributes={"article": "Denim Jacket", "color": "Blue"},
        ),
        ["M", "L"],
        GenerationConfig(rule=AttributeRule.FIRST_LETTERS, separator="-"),
    )


@pytest.fixture
def basic_tee_records() -> list[SkuRecord]:
    """Summer basic tee with full-mode colour (S-BT-NAVYBLUE-S)."""
    return generate_batch(
        FormInputs(
            product="Summer",
            attributes={"article": "Basic Tee", "color": "Navy Blue"},
            full_mode={"color": True},
        ),
        ["S"],
        GenerationConfig(rule=AttributeRule.INITIALS, separator="-"),
    )
