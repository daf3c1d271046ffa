"""Connection configuration and adapter loading.

ConnectionConfig is a Pydantic model for type-safe connection config.
Adapters are imported lazily so that only the driver actually used needs to
be installed.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

from pydantic import BaseModel, Field

from row_mapper.core.enums import DatabaseBackend
from row_mapper.core.exceptions import AdapterError

logger = logging.getLogger(__name__)


class ConnectionConfig(BaseModel):
    """Configuration for a database connection.

    ``database`` is the file path (or ``":memory:"``) for SQLite and the
    database name otherwise. ``extra`` is passed through to the driver's
    connect call.
    """

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    extra: dict[str, Any] = Field(default_factory=dict)


# backend -> (module_path, adapter_class)
_ADAPTER_MAP: dict[DatabaseBackend, tuple[str, str]] = {
    DatabaseBackend.SQLITE: ("row_mapper.adapters.sqlite", "SqliteAdapter"),
    DatabaseBackend.POSTGRESQL: ("row_mapper.adapters.postgresql", "PostgresqlAdapter"),
    DatabaseBackend.MYSQL: ("row_mapper.adapters.mysql", "MysqlAdapter"),
}


def load_adapter(driver: str) -> Any:
    """Instantiate the adapter registered for *driver*."""
    module_path, cls_name = _ADAPTER_MAP[DatabaseBackend.from_driver(driver)]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{driver}': {e}") from e


def connect(config: ConnectionConfig) -> tuple[Any, Any]:
    """Open a connection described by *config*.

    Returns:
        ``(connection, adapter)``.

    Raises:
        AdapterError: If the driver is unknown or its library is missing.
    """
    adapter = load_adapter(config.driver)
    logger.debug("Connecting with %s driver to %s", config.driver, config.database)
    return adapter.connect(config), adapter
