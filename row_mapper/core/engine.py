"""Query execution engine.

Statements are rendered in full (parameters inlined) and executed through
the session's adapter. Driver exceptions are wrapped in ExecutionError.
Finder and GetRequest are the read side of the Session API.
"""

from __future__ import annotations

import datetime
import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterator, get_origin

from row_mapper.core.cancel import CancelToken
from row_mapper.core.exceptions import (
    ExecutionError,
    NoPrimaryKeyError,
    NoRowsError,
    NoTableNameError,
    QueryCancelledError,
    RowMapperError,
    WrongTypeError,
)
from row_mapper.core.params import bind_params
from row_mapper.core.query import Q
from row_mapper.mapping.associations import resolve_associations
from row_mapper.mapping.introspect import unwrap_optional
from row_mapper.mapping.scan import new_instance, row_values, scan_row

if TYPE_CHECKING:
    from row_mapper.core.session import Session

logger = logging.getLogger(__name__)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _log_statement(sql: str, debug: bool) -> None:
    logger.log(logging.INFO if debug else logging.DEBUG, "SQL: %s", sql)


@contextmanager
def guarded(adapter: Any, connection: Any, sql: str, token: CancelToken | None) -> Iterator[None]:
    """Run a statement under *token*, translating driver errors."""
    if token is not None:
        token.raise_if_cancelled(sql)
    try:
        with adapter.guard(connection, token):
            yield
    except RowMapperError:
        raise
    except Exception as e:
        if token is not None and token.cancelled:
            raise QueryCancelledError(sql) from e
        raise ExecutionError(sql, str(e)) from e


def run_statement(
    adapter: Any,
    connection: Any,
    sql: str,
    *,
    token: CancelToken | None = None,
    debug: bool = False,
) -> Any:
    """Execute *sql* and return the driver cursor."""
    _log_statement(sql, debug)
    with guarded(adapter, connection, sql, token):
        return adapter.execute(connection, sql)


def query_rows(
    adapter: Any,
    connection: Any,
    sql: str,
    *,
    token: CancelToken | None = None,
    debug: bool = False,
    first_only: bool = False,
) -> tuple[list[str], list[Any]]:
    """Execute a SELECT and fetch its rows.

    Returns:
        ``(column_names, rows)``. With *first_only* at most one row is fetched.
    """
    _log_statement(sql, debug)
    with guarded(adapter, connection, sql, token):
        cursor = adapter.execute(connection, sql)
        if cursor.description is None:
            return [], []
        columns = [desc[0] for desc in cursor.description]
        if first_only:
            row = cursor.fetchone()
            return columns, [] if row is None else [row]
        return columns, list(cursor.fetchall())


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", repr(type_))


def coerce_scalar(sql: str, value: Any, type_: Any) -> Any:
    """Represent a scalar result as *type_*, or raise WrongTypeError.

    Only lossless conversions a driver would also perform are applied.
    """
    base, optional = unwrap_optional(type_)
    if value is None:
        if optional:
            return None
        raise WrongTypeError(sql, _type_name(base), value)
    if base is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
    elif base is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, Decimal) and value == value.to_integral_value():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                pass
    elif base is float:
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return float(value)
    elif base is str:
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
    elif base is datetime.datetime:
        if isinstance(value, datetime.datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.datetime.fromisoformat(value.strip())
            except ValueError:
                pass
    elif isinstance(base, type) and isinstance(value, base):
        return value
    raise WrongTypeError(sql, _type_name(base), value)


def _is_instance_target(dest: Any) -> bool:
    return not isinstance(dest, type) and get_origin(dest) is None


class Finder:
    """A pending SELECT bound to a session.

    Usage:
        user = session.find("select * from users where id=:id", {"id": 1}).single(User)
        orders = session.find("select * from orders").include("items").all(Order)
    """

    def __init__(self, session: Session, sql: str, param: Any = None) -> None:
        self._session = session
        self._sql = sql
        self._param = param
        self._includes: list[str] = []
        self._debug = session.debug
        self._token: CancelToken | None = None

    def include(self, *associations: str) -> Finder:
        """Request associations to be loaded after the rows are scanned."""
        self._includes.extend(associations)
        return self

    def debug(self, enabled: bool = True) -> Finder:
        """Log the statements of this finder at INFO instead of DEBUG."""
        self._debug = enabled
        return self

    def cancel_with(self, token: CancelToken | None) -> Finder:
        self._token = token
        return self

    def _bound_sql(self) -> str:
        session = self._session
        return bind_params(self._sql, session.dialect, self._param, session.registry)

    def _rows(self, sql: str, first_only: bool = False) -> tuple[list[str], list[Any]]:
        session = self._session
        return query_rows(
            session.adapter,
            session.connection,
            sql,
            token=self._token,
            debug=self._debug,
            first_only=first_only,
        )

    def _fetch(self, sql: str, cls: type) -> list[Any]:
        descriptor = self._session.registry.describe(cls)
        columns, rows = self._rows(sql)
        return [scan_row(descriptor, new_instance(descriptor), columns, row) for row in rows]

    def _resolve(self, parents: list[Any]) -> None:
        resolve_associations(
            parents,
            self._includes,
            registry=self._session.registry,
            dialect=self._session.dialect,
            fetch=self._fetch,
        )

    def single(self, dest: Any) -> Any:
        """Scan the first row into *dest*.

        Args:
            dest: A mapped class (a new instance is returned) or an instance
                (filled in place and returned).

        Raises:
            NoRowsError: If the query matches no rows.
        """
        descriptor = self._session.registry.describe(dest)
        sql = self._bound_sql()
        columns, rows = self._rows(sql, first_only=True)
        if not rows:
            raise NoRowsError(sql)
        target = dest if _is_instance_target(dest) else new_instance(descriptor)
        scan_row(descriptor, target, columns, rows[0])
        self._resolve([target])
        return target

    def all(self, dest: Any) -> list[Any]:
        """Scan every row into a new instance of *dest*.

        *dest* may be ``T`` or ``list[T]``. Zero rows yields an empty list.
        """
        descriptor = self._session.registry.describe(dest)
        items = self._fetch(self._bound_sql(), descriptor.type)
        self._resolve(items)
        return items

    def scalar(self, type_: Any = None) -> Any:
        """First column of the first row, coerced to *type_* when given.

        Raises:
            NoRowsError: If the query matches no rows.
            WrongTypeError: If the value cannot be represented as *type_*.
        """
        sql = self._bound_sql()
        columns, rows = self._rows(sql, first_only=True)
        if not rows:
            raise NoRowsError(sql)
        value = row_values(columns, rows[0])[0]
        if type_ is None:
            return value
        return coerce_scalar(sql, value, type_)

    def count(self) -> int:
        """Scalar fetch that must produce a 64-bit integer."""
        value = self.scalar(int)
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise WrongTypeError(self._bound_sql(), "int64", value)
        return value


class GetRequest:
    """Primary-key lookup: ``session.get(1).include("orders").do(User)``."""

    def __init__(self, session: Session, pk: Any) -> None:
        self._session = session
        self._pk = pk
        self._includes: list[str] = []
        self._token: CancelToken | None = None
        self._debug = session.debug

    def include(self, *associations: str) -> GetRequest:
        self._includes.extend(associations)
        return self

    def cancel_with(self, token: CancelToken | None) -> GetRequest:
        self._token = token
        return self

    def debug(self, enabled: bool = True) -> GetRequest:
        self._debug = enabled
        return self

    def do(self, dest: Any) -> Any:
        descriptor = self._session.registry.describe(dest)
        if not descriptor.table_name:
            raise NoTableNameError(descriptor.type.__name__)
        pk = descriptor.primary_key()
        if pk is None:
            raise NoPrimaryKeyError(descriptor.type.__name__)
        sql = Q(self._session.dialect, descriptor.table_name).where().eq(pk.column, self._pk).sql()
        return (
            Finder(self._session, sql)
            .include(*self._includes)
            .cancel_with(self._token)
            .debug(self._debug)
            .single(dest)
        )
