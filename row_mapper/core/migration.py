"""Database migration management.

Manages versioned SQL migration files with numeric ordering,
incremental execution, and tracking of applied versions.
"""

from __future__ import annotations

import datetime
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from row_mapper.core.exceptions import (
    ExecutionError,
    MigrationExecutionError,
    MigrationFileError,
)
from row_mapper.core.session import Session
from row_mapper.mapping.introspect import column

logger = logging.getLogger(__name__)

MIGRATION_TABLE = "schema_migrations"

_MIGRATION_PATTERN = re.compile(r"^(\d+)_(.+)\.sql$")
_COMMENT_PREFIXES = ("--", "#")


@dataclass
class SchemaMigration:
    """Row of the bookkeeping table."""

    version: int = column(f"version,primarykey,table={MIGRATION_TABLE}", default=0)
    created: Optional[datetime.datetime] = column("created", default=None)


@dataclass(frozen=True)
class MigrationInfo:
    """Metadata about a single migration file."""

    version: int
    description: str
    file_path: Path
    applied: bool = False


def split_statements(script: str) -> list[str]:
    """Split a migration script on ``;`` and drop ``--``/``#`` comment lines."""
    statements: list[str] = []
    for chunk in script.split(";"):
        lines = [
            line for line in chunk.strip().splitlines()
            if not line.strip().startswith(_COMMENT_PREFIXES)
        ]
        sql = "\n".join(lines).strip()
        if sql:
            statements.append(sql)
    return statements


class MigrationManager:
    """Manages forward-only SQL schema migrations.

    Migration files must follow ``NNN_description.sql``; the leading digits
    are the integer version. Applied versions are tracked in the
    ``schema_migrations`` table, which is created on construction.
    """

    def __init__(self, migration_dir: Path | str, session: Session) -> None:
        self._migration_dir = Path(migration_dir)
        self._session = session
        self._ensure_tracking_table()

    def _ensure_tracking_table(self) -> None:
        self._session.execute(self._session.dialect.create_migration_table_sql(MIGRATION_TABLE))

    def _applied_versions(self) -> set[int]:
        rows = self._session.find(f"SELECT * FROM {MIGRATION_TABLE}").all(SchemaMigration)
        return {row.version for row in rows}

    def discover(self) -> list[MigrationInfo]:
        """Discover all migration files and their applied status.

        Raises:
            MigrationFileError: For a ``.sql`` file not named ``NNN_description.sql``
                or two files sharing a version.
        """
        applied_versions = self._applied_versions()
        migrations: dict[int, MigrationInfo] = {}

        for file_path in sorted(self._migration_dir.glob("*.sql")):
            match = _MIGRATION_PATTERN.match(file_path.name)
            if not match:
                raise MigrationFileError(file_path.name, "Must match pattern NNN_description.sql")

            version = int(match.group(1))
            if version in migrations:
                raise MigrationFileError(
                    file_path.name,
                    f"Version {version} already used by {migrations[version].file_path.name}",
                )
            migrations[version] = MigrationInfo(
                version=version,
                description=match.group(2),
                file_path=file_path,
                applied=version in applied_versions,
            )

        return sorted(migrations.values(), key=lambda m: m.version)

    def pending(self) -> list[MigrationInfo]:
        """Return only unapplied migrations, sorted by version."""
        return [m for m in self.discover() if not m.applied]

    def applied(self) -> list[MigrationInfo]:
        """Return list of already-applied migrations."""
        return [m for m in self.discover() if m.applied]

    def current_version(self) -> int | None:
        """Return the highest applied version, or None if nothing was applied."""
        return self._session.find(f"SELECT MAX(version) FROM {MIGRATION_TABLE}").scalar(Optional[int])

    def apply(self) -> list[MigrationInfo]:
        """Apply all pending migrations in order.

        Each file runs in its own transaction together with its version
        record. Stops on the first failure, leaving that file unapplied.
        Returns the list of successfully applied migrations.
        """
        dialect = self._session.dialect
        applied: list[MigrationInfo] = []
        current = self.current_version()
        logger.info(
            "Schema version: %s", current if current is not None else "none"
        )

        for migration in self.pending():
            logger.info("Applying %s", migration.file_path.name)
            statements = split_statements(migration.file_path.read_text(encoding="utf-8"))
            tx = self._session.begin()
            try:
                for sql in statements:
                    tx.run(sql)
                tx.run(dialect.insert_migration_version_sql(MIGRATION_TABLE, migration.version))
                tx.commit()
            except ExecutionError as e:
                if tx.active:
                    tx.rollback()
                raise MigrationExecutionError(migration.version, str(e)) from e

            applied.append(
                MigrationInfo(
                    version=migration.version,
                    description=migration.description,
                    file_path=migration.file_path,
                    applied=True,
                )
            )

        if not applied:
            logger.info("No pending migrations in %s", self._migration_dir)
        return applied
