"""
Example 04: Transactions

This example demonstrates explicit transactions with automatic rollback on errors.
"""

from dataclasses import dataclass

from row_mapper import ConnectionConfig, ExecutionError, Session, TransactionStateError, column


@dataclass
class Account:
    id: int = column("id,pk,autoincrement,table=accounts", default=0)
    owner: str = column("owner", default="")
    balance: int = column("balance", default=0)


def main():
    config = ConnectionConfig(driver="sqlite", database=":memory:")

    with Session.from_config(config) as session:
        session.execute(
            "CREATE TABLE accounts (id INTEGER PRIMARY KEY AUTOINCREMENT, owner TEXT, balance INTEGER CHECK (balance >= 0))"
        )
        session.insert(Account(owner="Alice", balance=100))
        session.insert(Account(owner="Bob", balance=20))

        print("=== Transactions ===\n")

        # Commit on normal exit
        with session.begin() as tx:
            tx.execute("UPDATE accounts SET balance=balance-:amount WHERE owner='Alice'", {"amount": 30})
            tx.execute("UPDATE accounts SET balance=balance+:amount WHERE owner='Bob'", {"amount": 30})
        print(f"after transfer: {session.find('SELECT * FROM accounts').all(Account)}")

        # A failing statement rolls the whole transaction back
        try:
            with session.begin() as tx:
                tx.execute("UPDATE accounts SET balance=balance+500 WHERE owner='Alice'")
                tx.execute("UPDATE accounts SET balance=balance-500 WHERE owner='Bob'")
        except ExecutionError as e:
            print(f"\ntransfer failed: {e}")
        print(f"state: {tx.state}")
        print(f"unchanged: {session.find('SELECT * FROM accounts').all(Account)}")

        # Finished transactions refuse further work
        try:
            tx.commit()
        except TransactionStateError as e:
            print(f"\n{e}")


if __name__ == "__main__":
    main()
