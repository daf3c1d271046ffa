"""MySQL adapter using mysql-connector-python."""

from __future__ import annotations

from contextlib import nullcontext
from typing import Any, ContextManager

from row_mapper.core.cancel import CancelToken
from row_mapper.core.connection import ConnectionConfig
from row_mapper.core.dialect import MYSQL, Dialect
from row_mapper.core.exceptions import AdapterError


class MysqlAdapter:
    """Synchronous MySQL adapter."""

    @property
    def dialect(self) -> Dialect:
        return MYSQL

    def connect(self, config: ConnectionConfig) -> Any:
        try:
            import mysql.connector
        except ImportError as e:
            raise AdapterError(f"mysql-connector-python is required for the mysql driver: {e}") from e
        params = {
            "host": config.host,
            "port": config.port,
            "user": config.user,
            "password": config.password,
            "database": config.database,
        }
        return mysql.connector.connect(
            **{k: v for k, v in params.items() if v is not None}, **config.extra
        )

    def begin(self, connection: Any) -> None:
        if not connection.in_transaction:
            connection.start_transaction()

    def execute(self, connection: Any, sql: str) -> Any:
        """Execute SQL on a buffered cursor so several result sets may be open at once."""
        cursor = connection.cursor(buffered=True)
        cursor.execute(sql)
        return cursor

    def last_insert_id(self, cursor: Any) -> int | None:
        return cursor.lastrowid

    def guard(self, connection: Any, token: CancelToken | None) -> ContextManager[None]:
        return nullcontext()
