"""Database backends known to row_mapper."""

from __future__ import annotations

from enum import Enum

from row_mapper.core.exceptions import AdapterError


class DatabaseBackend(Enum):
    """Backend names accepted as ``ConnectionConfig.driver``."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"

    @classmethod
    def from_driver(cls, driver: str) -> DatabaseBackend:
        """Look up a backend by driver name, ignoring case."""
        try:
            return cls(driver.strip().lower())
        except ValueError:
            raise AdapterError(f"Unsupported database driver: {driver}") from None
