"""
Example 02: Model Mapping

This example demonstrates mapped dataclasses and pydantic models, and
insert/update/delete generated from their tags.
"""

from dataclasses import dataclass

from pydantic import BaseModel, Field

from row_mapper import ConnectionConfig, Session, column


@dataclass
class Tweet:
    id: int = column("id,pk,autoincrement,table=tweets", default=0)
    user_id: int = column("user_id", default=0)
    message: str = column("message", default="")
    draft: bool = column("-", default=False)  # never stored


class Product(BaseModel):
    id: int = Field(default=0, json_schema_extra={"db": "id,pk,serial,table=products"})
    title: str = Field(default="", json_schema_extra={"db": "title"})
    price: float = 0.0


def main():
    config = ConnectionConfig(driver="sqlite", database=":memory:")

    with Session.from_config(config, debug=True) as session:
        session.execute("CREATE TABLE tweets (id INTEGER PRIMARY KEY AUTOINCREMENT, user_id INTEGER, message TEXT)")
        session.execute("CREATE TABLE products (id INTEGER PRIMARY KEY AUTOINCREMENT, title TEXT, price REAL)")

        print("=== Model Mapping ===\n")

        tweet = Tweet(user_id=1, message="It's a start", draft=True)
        session.insert(tweet)
        print(f"inserted tweet id: {tweet.id}")

        tweet.message = "Edited"
        print(f"updated rows: {session.update(tweet)}")
        print(f"reloaded: {session.get(tweet.id).do(Tweet)}")

        lamp = Product(title="Lamp", price=19.5)
        session.insert(lamp)
        print(f"inserted product: {lamp}")
        print(f"products: {session.find('SELECT * FROM products').all(list[Product])}")

        print(f"deleted rows: {session.delete(tweet)}")
        print(f"remaining tweets: {session.count('SELECT COUNT(*) FROM tweets')}")


if __name__ == "__main__":
    main()
