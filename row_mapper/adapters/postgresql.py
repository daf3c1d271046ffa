"""PostgreSQL adapter using psycopg (v3+).

PostgreSQL has no last-insert-id facility: generated keys come back through
``INSERT ... RETURNING`` and are read by the engine.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import Any, ContextManager

from row_mapper.core.cancel import CancelToken
from row_mapper.core.connection import ConnectionConfig
from row_mapper.core.dialect import POSTGRESQL, Dialect
from row_mapper.core.exceptions import AdapterError


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    return " ".join(parts)


class PostgresqlAdapter:
    """Synchronous PostgreSQL adapter."""

    @property
    def dialect(self) -> Dialect:
        return POSTGRESQL

    def connect(self, config: ConnectionConfig) -> Any:
        try:
            import psycopg
        except ImportError as e:
            raise AdapterError(f"psycopg is required for the postgresql driver: {e}") from e
        return psycopg.connect(_build_conninfo(config), **config.extra)

    def begin(self, connection: Any) -> None:
        # psycopg opens a transaction implicitly on the first statement
        return None

    def execute(self, connection: Any, sql: str) -> Any:
        return connection.execute(sql)

    def last_insert_id(self, cursor: Any) -> int | None:
        return None

    def guard(self, connection: Any, token: CancelToken | None) -> ContextManager[None]:
        return nullcontext()
