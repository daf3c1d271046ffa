"""SQL dialects.

A Dialect carries the engine-specific rules the rest of the package needs:
identifier quoting, string-literal escaping, LIMIT/OFFSET rendering, how the
database reports generated keys, and the two statements the migration runner
issues against its bookkeeping table.
"""

from __future__ import annotations

from dataclasses import dataclass

from row_mapper.core.enums import DatabaseBackend


@dataclass(frozen=True)
class Dialect:
    """Engine-specific quoting and statement templates."""

    name: str
    identifier_quote: str
    string_escape: str  # "backslash" or "double"
    supports_last_insert_id: bool
    limit_style: str  # "comma" (LIMIT skip,take) or "offset" (LIMIT take OFFSET skip)
    unbounded_limit: str | None
    upsert_style: str  # "replace", "duplicate_key" or "on_conflict"

    def __str__(self) -> str:
        return self.name

    # Public helpers for hand-written SQL. Generated statements emit
    # table and column names exactly as declared in the tags.
    def escape_table_name(self, name: str) -> str:
        return f"{self.identifier_quote}{name}{self.identifier_quote}"

    def escape_column_name(self, name: str) -> str:
        return f"{self.identifier_quote}{name}{self.identifier_quote}"

    def quote_string(self, value: str) -> str:
        """Escape *value* for use inside a single-quoted literal (quotes not added)."""
        if self.string_escape == "backslash":
            return value.replace("\\", "\\\\").replace("'", "\\'")
        return value.replace("'", "''")

    def limit_clause(self, skip: int | None, take: int | None) -> str:
        """Render the LIMIT/OFFSET tail of a SELECT, or "" when neither is set."""
        if not skip and take is None:
            return ""
        if self.limit_style == "comma":
            if skip:
                limit = take if take is not None else self.unbounded_limit
                return f"LIMIT {skip},{limit}"
            return f"LIMIT {take}"
        parts: list[str] = []
        if take is not None:
            parts.append(f"LIMIT {take}")
        elif skip and self.unbounded_limit is not None:
            parts.append(f"LIMIT {self.unbounded_limit}")
        if skip:
            parts.append(f"OFFSET {skip}")
        return " ".join(parts)

    def create_migration_table_sql(self, table: str) -> str:
        return f"CREATE TABLE IF NOT EXISTS {table} (version INTEGER PRIMARY KEY, created TIMESTAMP)"

    def insert_migration_version_sql(self, table: str, version: int) -> str:
        """Insert *version* into the bookkeeping table, refreshing it if present."""
        if self.upsert_style == "replace":
            return (
                f"INSERT OR REPLACE INTO {table} (version, created) "
                f"VALUES ({version:d}, CURRENT_TIMESTAMP)"
            )
        if self.upsert_style == "duplicate_key":
            return (
                f"INSERT INTO {table} (version, created) VALUES ({version:d}, CURRENT_TIMESTAMP) "
                "ON DUPLICATE KEY UPDATE created=CURRENT_TIMESTAMP"
            )
        return (
            f"INSERT INTO {table} (version, created) VALUES ({version:d}, CURRENT_TIMESTAMP) "
            "ON CONFLICT (version) DO UPDATE SET created=EXCLUDED.created"
        )


MYSQL = Dialect(
    name="mysql",
    identifier_quote="`",
    string_escape="backslash",
    supports_last_insert_id=True,
    limit_style="comma",
    unbounded_limit="18446744073709551615",
    upsert_style="duplicate_key",
)

SQLITE3 = Dialect(
    name="sqlite",
    identifier_quote="`",
    string_escape="double",
    supports_last_insert_id=True,
    limit_style="offset",
    unbounded_limit="-1",
    upsert_style="replace",
)

POSTGRESQL = Dialect(
    name="postgresql",
    identifier_quote='"',
    string_escape="double",
    supports_last_insert_id=False,
    limit_style="offset",
    unbounded_limit=None,
    upsert_style="on_conflict",
)

_DIALECTS: dict[str, Dialect] = {
    DatabaseBackend.MYSQL.value: MYSQL,
    DatabaseBackend.SQLITE.value: SQLITE3,
    DatabaseBackend.POSTGRESQL.value: POSTGRESQL,
}


def dialect_for(backend: DatabaseBackend | str) -> Dialect:
    """Look up the built-in dialect for a backend or driver name."""
    key = backend.value if isinstance(backend, DatabaseBackend) else backend.lower()
    try:
        return _DIALECTS[key]
    except KeyError:
        raise ValueError(f"No dialect for backend: {backend}") from None
