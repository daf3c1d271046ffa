"""SQLite adapter using stdlib sqlite3."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator

from row_mapper.core.cancel import CancelToken
from row_mapper.core.connection import ConnectionConfig
from row_mapper.core.dialect import SQLITE3, Dialect

# Virtual machine instructions between cancellation checks.
_PROGRESS_STEPS = 1000


class SqliteAdapter:
    """Synchronous SQLite adapter."""

    @property
    def dialect(self) -> Dialect:
        return SQLITE3

    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        conn = sqlite3.connect(config.database, check_same_thread=False, **config.extra)
        conn.row_factory = sqlite3.Row
        return conn

    def begin(self, connection: sqlite3.Connection) -> None:
        # sqlite3 only opens transactions implicitly before DML; DDL needs an explicit BEGIN
        if not connection.in_transaction:
            connection.execute("BEGIN")

    def execute(self, connection: sqlite3.Connection, sql: str) -> sqlite3.Cursor:
        return connection.execute(sql)

    def last_insert_id(self, cursor: sqlite3.Cursor) -> int | None:
        return cursor.lastrowid

    @contextmanager
    def guard(self, connection: sqlite3.Connection, token: CancelToken | None) -> Iterator[None]:
        """Interrupt the running statement once *token* is cancelled."""
        if token is None:
            yield
            return

        def _check() -> int:
            return 1 if token.cancelled else 0

        connection.set_progress_handler(_check, _PROGRESS_STEPS)
        try:
            yield
        finally:
            connection.set_progress_handler(None, _PROGRESS_STEPS)
