"""Session - binds a DB-API connection to the mapping and execution layers.

Writes without an explicit transaction run in autocommit mode: each
statement is committed on success and rolled back on failure. Writes given
a Transaction participate in its commit/rollback instead, and so do writes
issued without one while a transaction begun on the session is active.
"""

from __future__ import annotations

import logging
from typing import Any

from row_mapper.core.cancel import CancelToken
from row_mapper.core.connection import ConnectionConfig, connect, load_adapter
from row_mapper.core.dialect import Dialect
from row_mapper.core.engine import Finder, GetRequest, run_statement
from row_mapper.core.exceptions import ExecutionError, TransactionStateError
from row_mapper.core.params import bind_params
from row_mapper.core.transaction import Transaction
from row_mapper.mapping.introspect import assign_field
from row_mapper.mapping.registry import TypeRegistry, default_registry
from row_mapper.mapping.statements import generate_delete, generate_insert, generate_update

logger = logging.getLogger(__name__)


class Session:
    """Entry point for reads and writes of mapped entities.

    Args:
        connection: An open DB-API connection.
        dialect: Quoting rules; defaults to the adapter's dialect.
        adapter: Driver adapter; loaded from the dialect name when omitted
            (SQLite when neither is given).
        registry: Type registry; the process-wide default when omitted.
        debug: Log every statement at INFO instead of DEBUG.
    """

    def __init__(
        self,
        connection: Any,
        dialect: Dialect | None = None,
        *,
        adapter: Any = None,
        registry: TypeRegistry | None = None,
        debug: bool = False,
    ) -> None:
        if adapter is None:
            adapter = load_adapter(dialect.name if dialect is not None else "sqlite")
        self.connection = connection
        self.adapter = adapter
        self.dialect: Dialect = dialect if dialect is not None else adapter.dialect
        self.registry = registry if registry is not None else default_registry
        self.debug = debug
        self._transaction: Transaction | None = None

    @classmethod
    def from_config(cls, config: ConnectionConfig, **kwargs: Any) -> Session:
        """Open a connection from *config* and wrap it in a Session."""
        connection, adapter = connect(config)
        return cls(connection, adapter=adapter, **kwargs)

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # --- Reads ---

    def find(self, sql: str, param: Any = None) -> Finder:
        """Prepare a SELECT; ``:Name`` placeholders are filled from *param*."""
        return Finder(self, sql, param)

    def get(self, pk: Any) -> GetRequest:
        """Prepare a lookup by primary key; the table comes from the destination type."""
        return GetRequest(self, pk)

    def count(self, sql: str, param: Any = None, *, token: CancelToken | None = None) -> int:
        return self.find(sql, param).cancel_with(token).count()

    # --- Writes ---

    def begin(self) -> Transaction:
        """Start a transaction on the session's connection.

        Raises:
            TransactionStateError: If a transaction begun here is still active.
        """
        if self.active_transaction is not None:
            raise TransactionStateError("active", "begin another")
        self._transaction = Transaction(self)
        return self._transaction

    @property
    def active_transaction(self) -> Transaction | None:
        tx = self._transaction
        return tx if tx is not None and tx.active else None

    def execute(
        self,
        sql: str,
        param: Any = None,
        tx: Transaction | None = None,
        *,
        token: CancelToken | None = None,
    ) -> int:
        """Execute a statement that returns no rows; returns the affected row count."""
        sql = bind_params(sql, self.dialect, param, self.registry)
        cursor, _ = self._write(sql, tx, token)
        return int(cursor.rowcount)

    def insert(self, entity: Any, tx: Transaction | None = None, *, token: CancelToken | None = None) -> int:
        """Insert *entity*; a database-generated key is written back onto it."""
        descriptor = self.registry.describe(entity)
        sql = generate_insert(self.dialect, descriptor, entity)
        auto = descriptor.autoincrement_field()
        cursor, key = self._write(sql, tx, token, read_key=auto is not None)
        if auto is not None and key is not None:
            assign_field(entity, auto.name, key)
        return int(cursor.rowcount)

    def update(self, entity: Any, tx: Transaction | None = None, *, token: CancelToken | None = None) -> int:
        sql = generate_update(self.dialect, self.registry.describe(entity), entity)
        cursor, _ = self._write(sql, tx, token)
        return int(cursor.rowcount)

    def delete(self, entity: Any, tx: Transaction | None = None, *, token: CancelToken | None = None) -> int:
        sql = generate_delete(self.dialect, self.registry.describe(entity), entity)
        cursor, _ = self._write(sql, tx, token)
        return int(cursor.rowcount)

    def _generated_key(self, cursor: Any) -> Any:
        if self.dialect.supports_last_insert_id:
            return self.adapter.last_insert_id(cursor)
        row = cursor.fetchone()
        if row is None:
            return None
        return next(iter(row.values())) if isinstance(row, dict) else row[0]

    def _write(
        self,
        sql: str,
        tx: Transaction | None,
        token: CancelToken | None,
        read_key: bool = False,
    ) -> tuple[Any, Any]:
        if tx is None:
            tx = self.active_transaction
        if tx is not None:
            cursor = tx.run(sql, token=token)
            return cursor, self._generated_key(cursor) if read_key else None
        try:
            cursor = run_statement(self.adapter, self.connection, sql, token=token, debug=self.debug)
            key = self._generated_key(cursor) if read_key else None
            self.connection.commit()
        except ExecutionError:
            self.connection.rollback()
            raise
        except Exception as e:
            self.connection.rollback()
            raise ExecutionError(sql, str(e)) from e
        return cursor, key
