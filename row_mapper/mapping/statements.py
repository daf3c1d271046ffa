"""INSERT / UPDATE / DELETE generation for mapped entities.

Values are inlined with :func:`row_mapper.core.quote.quote`. Table and column
names are emitted as declared, without identifier quoting.
"""

from __future__ import annotations

from typing import Any

from row_mapper.core.dialect import Dialect
from row_mapper.core.exceptions import NoPrimaryKeyError, NoTableNameError
from row_mapper.core.quote import quote
from row_mapper.mapping.descriptor import FieldDescriptor, TypeDescriptor


def _table(descriptor: TypeDescriptor) -> str:
    if not descriptor.table_name:
        raise NoTableNameError(descriptor.type.__name__)
    return descriptor.table_name


def _primary_key(descriptor: TypeDescriptor) -> FieldDescriptor:
    pk = descriptor.primary_key()
    if pk is None:
        raise NoPrimaryKeyError(descriptor.type.__name__)
    return pk


def generate_insert(dialect: Dialect, descriptor: TypeDescriptor, entity: Any) -> str:
    """Build the INSERT for *entity*.

    Auto-increment and transient fields are left out. On dialects without a
    last-insert-id facility the generated key is requested with RETURNING.
    """
    table = _table(descriptor)
    columns: list[str] = []
    values: list[str] = []
    for fd in descriptor.fields:
        if fd.is_transient or fd.is_autoincrement:
            continue
        columns.append(fd.column)
        values.append(quote(dialect, getattr(entity, fd.name)))
    sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(values)})"
    auto = descriptor.autoincrement_field()
    if auto is not None and not dialect.supports_last_insert_id:
        sql += f" RETURNING {auto.column}"
    return sql


def generate_update(dialect: Dialect, descriptor: TypeDescriptor, entity: Any) -> str:
    table = _table(descriptor)
    pk = _primary_key(descriptor)
    assignments = [
        f"{fd.column}={quote(dialect, getattr(entity, fd.name))}"
        for fd in descriptor.fields
        if not fd.is_transient and not fd.is_primary_key
    ]
    pk_value = quote(dialect, getattr(entity, pk.name))
    return f"UPDATE {table} SET {', '.join(assignments)} WHERE {pk.column}={pk_value}"


def generate_delete(dialect: Dialect, descriptor: TypeDescriptor, entity: Any) -> str:
    table = _table(descriptor)
    pk = _primary_key(descriptor)
    return f"DELETE FROM {table} WHERE {pk.column}={quote(dialect, getattr(entity, pk.name))}"
