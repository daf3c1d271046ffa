"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

import pytest

from row_mapper.adapters.sqlite import SqliteAdapter
from row_mapper.core.connection import ConnectionConfig
from row_mapper.core.session import Session
from row_mapper.mapping.registry import TypeRegistry

SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    karma REAL,
    suspended INTEGER NOT NULL DEFAULT 0,
    created TIMESTAMP
);
CREATE TABLE orders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    ref TEXT NOT NULL
);
CREATE TABLE order_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_id INTEGER NOT NULL,
    sku TEXT NOT NULL,
    qty INTEGER NOT NULL
);
CREATE TABLE tweets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    message TEXT NOT NULL,
    retweets INTEGER NOT NULL DEFAULT 0
);

INSERT INTO users (id, name, karma, suspended, created) VALUES
    (1, 'Oliver', 42.13, 0, '2013-01-24 18:14:15'),
    (2, 'Sandra', NULL, 1, NULL),
    (3, 'Mark', 7.5, 0, '2014-06-01 09:00:00');
INSERT INTO orders (id, user_id, ref) VALUES
    (1, 1, 'A-1'),
    (2, 1, 'A-2'),
    (3, 3, 'C-1');
INSERT INTO order_items (order_id, sku, qty) VALUES
    (1, 'apple', 2),
    (1, 'pear', 1),
    (2, 'plum', 5),
    (3, 'kiwi', 3);
INSERT INTO tweets (user_id, message, retweets) VALUES
    (1, 'Hello', 25),
    (1, 'World', 0),
    (2, 'Hi there', 3);
"""


class CountingConnection:
    """sqlite3 connection proxy recording every executed statement."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self.statements: list[str] = []

    def execute(self, sql: str, *args: Any) -> sqlite3.Cursor:
        self.statements.append(sql)
        return self._connection.execute(sql, *args)

    def selects(self) -> list[str]:
        return [s for s in self.statements if s.lstrip().upper().startswith("SELECT")]

    def __getattr__(self, name: str) -> Any:
        return getattr(self._connection, name)


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:")


@pytest.fixture
def db(sqlite_config: ConnectionConfig) -> sqlite3.Connection:
    """Seeded in-memory database."""
    conn = SqliteAdapter().connect(sqlite_config)
    conn.executescript(SCHEMA)
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def counting_db(db: sqlite3.Connection) -> CountingConnection:
    return CountingConnection(db)


@pytest.fixture
def registry() -> TypeRegistry:
    return TypeRegistry()


@pytest.fixture
def session(db: sqlite3.Connection, registry: TypeRegistry) -> Session:
    return Session(db, registry=registry)


@pytest.fixture
def counting_session(counting_db: CountingConnection, registry: TypeRegistry) -> Session:
    return Session(counting_db, registry=registry)


@pytest.fixture
def migration_dir(tmp_path: Path) -> Path:
    d = tmp_path / "migrations"
    d.mkdir()
    return d


@pytest.fixture
def write_migration(migration_dir: Path):
    """Helper to write migration files.

    Usage:
        write_migration("001_init.sql", "CREATE TABLE users (id INTEGER)")
    """

    def _write(filename: str, content: str) -> Path:
        file_path = migration_dir / filename
        file_path.write_text(content, encoding="utf-8")
        return file_path

    return _write
