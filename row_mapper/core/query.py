"""Fluent SELECT builder.

    Q(SQLITE3, "users").alias("u")
        .join("tweets").alias("t").on("u.id", "t.user_id")
        .project("u.name", "t.message")
        .order().asc("u.name")
        .take(10).skip(5)
        .sql()

Clause objects forward the query-level methods back to their query, so a
chain can continue from any of them. Table names, aliases and projected
columns pass through the dialect's string escaping unless wrapped in
:class:`SafeSqlString`; values are rendered with :func:`quote`.
"""

from __future__ import annotations

from typing import Any, Iterable

from row_mapper.core.dialect import Dialect
from row_mapper.core.quote import quote


class SafeSqlString(str):
    """SQL fragment emitted verbatim by :meth:`Q.project`."""


def _escape(dialect: Dialect, text: str) -> str:
    if isinstance(text, SafeSqlString):
        return str(text)
    return dialect.quote_string(text)


def _flatten(values: Iterable[Any]) -> list[Any]:
    flat: list[Any] = []
    for value in values:
        if isinstance(value, (list, tuple, set, frozenset)):
            flat.extend(value)
        else:
            flat.append(value)
    return flat


class _Clause:
    """Forwards chain methods to the owning query."""

    def __init__(self, query: Q) -> None:
        self._query = query

    def where(self) -> _Where:
        return self._query.where()

    def project(self, *columns: str) -> Q:
        return self._query.project(*columns)

    def join(self, table: str) -> _Join:
        return self._query.join(table)

    def order(self) -> _Order:
        return self._query.order()

    def take(self, take: int) -> Q:
        return self._query.take(take)

    def skip(self, skip: int) -> Q:
        return self._query.skip(skip)

    def query(self) -> Q:
        return self._query

    def sql(self) -> str:
        return self._query.sql()


class _Where(_Clause):
    """AND-joined list of conditions."""

    def __init__(self, query: Q) -> None:
        super().__init__(query)
        self._nodes: list[str] = []

    def _add(self, node: str) -> _Where:
        self._nodes.append(node)
        return self

    def _quote(self, value: Any) -> str:
        return quote(self._query.dialect, value)

    def eq(self, column: str, value: Any) -> _Where:
        if value is None:
            return self._add(f"{column} IS NULL")
        return self._add(f"{column}={self._quote(value)}")

    def ne(self, column: str, value: Any) -> _Where:
        if value is None:
            return self._add(f"{column} IS NOT NULL")
        return self._add(f"{column}<>{self._quote(value)}")

    def eq_col(self, column: str, other: str) -> _Where:
        return self._add(f"{column}={other}")

    def ne_col(self, column: str, other: str) -> _Where:
        return self._add(f"{column}<>{other}")

    def lt(self, column: str, value: Any) -> _Where:
        return self._add(f"{column}<{self._quote(value)}")

    def lte(self, column: str, value: Any) -> _Where:
        return self._add(f"{column}<={self._quote(value)}")

    def gt(self, column: str, value: Any) -> _Where:
        return self._add(f"{column}>{self._quote(value)}")

    def gte(self, column: str, value: Any) -> _Where:
        return self._add(f"{column}>={self._quote(value)}")

    def like(self, column: str, pattern: str) -> _Where:
        return self._add(f"{column} LIKE {self._quote(pattern)}")

    def not_like(self, column: str, pattern: str) -> _Where:
        return self._add(f"{column} NOT LIKE {self._quote(pattern)}")

    def in_(self, column: str, *values: Any) -> _Where:
        """``column IN (...)``; sequences among *values* are expanded."""
        rendered = ",".join(self._quote(v) for v in _flatten(values))
        return self._add(f"{column} IN ({rendered})")

    def not_in(self, column: str, *values: Any) -> _Where:
        rendered = ",".join(self._quote(v) for v in _flatten(values))
        return self._add(f"{column} NOT IN ({rendered})")

    def render(self) -> str:
        return " AND ".join(self._nodes)

    def __bool__(self) -> bool:
        return bool(self._nodes)


class _Join(_Clause):
    def __init__(self, query: Q, table: str, kind: str) -> None:
        super().__init__(query)
        self._table = table
        self._alias = ""
        self._kind = kind
        self._left = ""
        self._right = ""

    def alias(self, alias: str) -> _Join:
        self._alias = alias
        return self

    def on(self, left: str, right: str) -> _Join:
        self._left = left
        self._right = right
        return self

    def render(self) -> str:
        dialect = self._query.dialect
        prefix = f"{self._kind} " if self._kind else ""
        table = _escape(dialect, self._table)
        if self._alias:
            table += f" {_escape(dialect, self._alias)}"
        return f"{prefix}JOIN {table} ON {self._left}={self._right}"


class _Order(_Clause):
    def __init__(self, query: Q) -> None:
        super().__init__(query)
        self._column = ""
        self._direction = ""

    def asc(self, column: str) -> _Order:
        self._column, self._direction = column, "ASC"
        return self

    def desc(self, column: str) -> _Order:
        self._column, self._direction = column, "DESC"
        return self

    def render(self) -> str:
        return f"{self._column} {self._direction}"


class Q:
    """A SELECT statement under construction."""

    def __init__(self, dialect: Dialect, table: str) -> None:
        self.dialect = dialect
        self._table = table
        self._alias = ""
        self._columns: list[str] = ["*"]
        self._joins: list[_Join] = []
        self._where: _Where | None = None
        self._orders: list[_Order] = []
        self._skip: int | None = None
        self._take: int | None = None

    def alias(self, alias: str) -> Q:
        self._alias = alias
        return self

    def project(self, *columns: str) -> Q:
        self._columns = list(columns)
        return self

    def where(self) -> _Where:
        """Return the WHERE clause, creating it on first use.

        Conditions added through later ``where()`` calls are AND-ed with the
        existing ones.
        """
        if self._where is None:
            self._where = _Where(self)
        return self._where

    def _add_join(self, table: str, kind: str) -> _Join:
        join = _Join(self, table, kind)
        self._joins.append(join)
        return join

    def join(self, table: str) -> _Join:
        return self._add_join(table, "")

    def inner_join(self, table: str) -> _Join:
        return self._add_join(table, "INNER")

    def outer_join(self, table: str) -> _Join:
        return self._add_join(table, "OUTER")

    def left_inner_join(self, table: str) -> _Join:
        return self._add_join(table, "LEFT INNER")

    def left_outer_join(self, table: str) -> _Join:
        return self._add_join(table, "LEFT OUTER")

    def order(self) -> _Order:
        order = _Order(self)
        self._orders.append(order)
        return order

    def take(self, take: int) -> Q:
        self._take = take
        return self

    def skip(self, skip: int) -> Q:
        self._skip = skip
        return self

    def query(self) -> Q:
        return self

    def sql(self) -> str:
        columns = ",".join(_escape(self.dialect, c) for c in self._columns)
        parts = [f"SELECT {columns} FROM {_escape(self.dialect, self._table)}"]
        if self._alias:
            parts[0] += f" {_escape(self.dialect, self._alias)}"
        parts.extend(join.render() for join in self._joins)
        if self._where:
            parts.append(f"WHERE {self._where.render()}")
        if self._orders:
            parts.append("ORDER BY " + ",".join(order.render() for order in self._orders))
        limit = self.dialect.limit_clause(self._skip, self._take)
        if limit:
            parts.append(limit)
        return " ".join(parts)

    def __str__(self) -> str:
        return self.sql()
