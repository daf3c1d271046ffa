"""Database adapter protocol.

Every adapter module implements SyncAdapter. The session and engine only
talk to drivers through it, plus the DB-API connection and cursor objects
the adapter hands out.
"""

from __future__ import annotations

from typing import Any, ContextManager, Protocol, runtime_checkable

from row_mapper.core.cancel import CancelToken
from row_mapper.core.connection import ConnectionConfig
from row_mapper.core.dialect import Dialect


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def dialect(self) -> Dialect:
        """Quoting and statement rules of the backend."""
        ...

    def connect(self, config: ConnectionConfig) -> Any:
        """Open a DB-API connection."""
        ...

    def begin(self, connection: Any) -> None:
        """Start an explicit transaction on *connection*."""
        ...

    def execute(self, connection: Any, sql: str) -> Any:
        """Execute fully rendered SQL and return a cursor."""
        ...

    def last_insert_id(self, cursor: Any) -> int | None:
        """Key generated by the last INSERT on *cursor*, if the driver reports one."""
        ...

    def guard(self, connection: Any, token: CancelToken | None) -> ContextManager[None]:
        """Context manager under which a statement observes *token*."""
        ...
