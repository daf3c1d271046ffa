"""
Example 03: Associations

This example demonstrates loading one-to-many and one-to-one associations.
Each requested association costs one extra query, whatever the number of rows.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from row_mapper import ConnectionConfig, Session, column


@dataclass
class Customer:
    id: int = column("id,pk,autoincrement,table=customers", default=0)
    name: str = column("name", default="")


@dataclass
class OrderItem:
    id: int = column("id,pk,autoincrement,table=order_items", default=0)
    order_id: int = column("order_id", default=0)
    sku: str = column("sku", default="")


@dataclass
class Order:
    id: int = column("id,pk,autoincrement,table=orders", default=0)
    customer_id: int = column("customer_id", default=0)
    items: list[OrderItem] = column("oneToMany=order_id", default_factory=list)
    customer: Optional[Customer] = column("oneToOne=customer_id", default=None)


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    config = ConnectionConfig(driver="sqlite", database=":memory:")

    with Session.from_config(config) as session:
        session.execute("CREATE TABLE customers (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)")
        session.execute("CREATE TABLE orders (id INTEGER PRIMARY KEY AUTOINCREMENT, customer_id INTEGER)")
        session.execute("CREATE TABLE order_items (id INTEGER PRIMARY KEY AUTOINCREMENT, order_id INTEGER, sku TEXT)")
        session.execute("INSERT INTO customers (name) VALUES ('Alice'), ('Bob')")
        session.execute("INSERT INTO orders (customer_id) VALUES (1), (1), (2)")
        session.execute("INSERT INTO order_items (order_id, sku) VALUES (1, 'apple'), (1, 'pear'), (3, 'plum')")

        print("=== Associations ===\n")

        # debug() logs every statement, showing one query per association
        orders = session.find("SELECT * FROM orders").debug().include("items", "customer").all(Order)
        for order in orders:
            skus = ", ".join(item.sku for item in order.items) or "-"
            print(f"order {order.id} for {order.customer.name}: {skus}")

        order = session.get(1).include("items").do(Order)
        print(f"\nget(1) loaded {len(order.items)} items")


if __name__ == "__main__":
    main()
