"""
Example 05: Migrations

This example demonstrates database migration management using MigrationManager.
"""

import logging
import tempfile
from pathlib import Path

from row_mapper import ConnectionConfig, MigrationManager, Session


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    workdir = Path(tempfile.mkdtemp())
    migrations_dir = workdir / "migrations"
    migrations_dir.mkdir()

    (migrations_dir / "001_create_users.sql").write_text("""
-- Migration: Create users table
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL
);
""")

    (migrations_dir / "002_create_orders.sql").write_text("""
-- Migration: Create orders table
CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL,
    total REAL NOT NULL
);
CREATE INDEX idx_orders_user ON orders (user_id);
""")

    config = ConnectionConfig(driver="sqlite", database=str(workdir / "app.db"))

    with Session.from_config(config) as session:
        manager = MigrationManager(migrations_dir, session)

        print("=== Migrations ===\n")
        for migration in manager.discover():
            status = "applied" if migration.applied else "pending"
            print(f"  {migration.version:03d} {migration.description}: {status}")

        applied = manager.apply()
        print(f"\napplied {len(applied)} migration(s), schema version {manager.current_version()}")

        # Running again is a no-op
        print(f"second run applied {len(manager.apply())} migration(s)")


if __name__ == "__main__":
    main()
