"""
Example 01: Basic Query Execution

This example demonstrates finders on a Session: single rows, lists, scalars
and the Q builder.
"""

from dataclasses import dataclass
from typing import Optional

from row_mapper import SQLITE3, ConnectionConfig, NoRowsError, Q, Session, column


@dataclass
class User:
    id: int = column("id,pk,autoincrement,table=users", default=0)
    name: str = column("name", default="")
    karma: Optional[float] = column("karma", default=None)


def main():
    config = ConnectionConfig(driver="sqlite", database=":memory:")

    with Session.from_config(config) as session:
        session.execute("CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, karma REAL)")
        session.execute("INSERT INTO users (name, karma) VALUES ('Alice', 12.5), ('Bob', NULL), ('Charlie', 3)")

        print("=== Basic Query Execution ===\n")

        # single: first row into a new instance
        user = session.find("SELECT * FROM users WHERE id=:id", {"id": 1}).single(User)
        print(f"single result: {user}")

        # all: every row
        users = session.find("SELECT * FROM users ORDER BY name").all(User)
        print(f"all result ({len(users)} rows):")
        for user in users:
            print(f"  - {user.name} (karma {user.karma})")
        print()

        # scalar / count
        print(f"count: {session.count('SELECT COUNT(*) FROM users')}")
        print(f"max karma: {session.find('SELECT MAX(karma) FROM users').scalar(float)}\n")

        # Q renders a SELECT with values inlined for the dialect
        sql = Q(SQLITE3, "users").where().gt("karma", 5).like("name", "A%").order().asc("name").take(10).sql()
        print(f"built: {sql}")
        print(f"matches: {session.find(sql).all(User)}\n")

        try:
            session.find("SELECT * FROM users WHERE id=999").single(User)
        except NoRowsError as e:
            print(f"no rows: {e}")


if __name__ == "__main__":
    main()
