"""Row-to-object scanning.

Result columns are matched against the destination's column map. Matched
columns are converted to the declared field type and assigned; unmatched
columns are discarded, and fields without a column keep their current value.

Conversions only ever produce kinds that quote() renders, so a scanned
entity can be written back. Driver values left as returned (bytes, Decimal
under a non-numeric annotation) are readable but cannot be written.
"""

from __future__ import annotations

import datetime
import functools
from decimal import Decimal
from typing import Any, Sequence

from row_mapper.core.exceptions import MappingError
from row_mapper.mapping.descriptor import FieldDescriptor, TypeDescriptor
from row_mapper.mapping.introspect import (
    FieldSpec,
    assign_field,
    declared_fields,
    is_pydantic_model,
    unwrap_optional,
    zero_value,
)


@functools.lru_cache(maxsize=None)
def _field_specs(cls: type) -> tuple[FieldSpec, ...]:
    return tuple(declared_fields(cls))


def new_instance(descriptor: TypeDescriptor) -> Any:
    """Create an instance of the described class with every field at its zero value.

    No ``__init__``/validation runs, so required fields need no arguments.
    """
    cls = descriptor.type
    values = {spec.name: zero_value(spec) for spec in _field_specs(cls)}
    if is_pydantic_model(cls):
        return cls.model_construct(**values)  # type: ignore[attr-defined]
    instance = cls.__new__(cls)
    for name, value in values.items():
        object.__setattr__(instance, name, value)
    return instance


def _parse_datetime(value: str) -> datetime.datetime:
    return datetime.datetime.fromisoformat(value.strip().replace("T", " ", 1))


def adapt_value(annotation: Any, value: Any) -> Any:
    """Convert a driver value to the field's declared type where the driver does not."""
    if value is None:
        return None
    base, _ = unwrap_optional(annotation)
    if base is bool and isinstance(value, int) and not isinstance(value, bool):
        return bool(value)
    if base is float and isinstance(value, (int, Decimal)) and not isinstance(value, bool):
        return float(value)
    if base is int and isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    if base is str and isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    if base is datetime.datetime and isinstance(value, str):
        return _parse_datetime(value)
    if base is datetime.date:
        if isinstance(value, datetime.datetime):
            return value.date()
        if isinstance(value, str):
            return datetime.date.fromisoformat(value.strip()[:10])
    return value


def row_values(columns: Sequence[str], row: Any) -> list[Any]:
    """Positional values of *row*, which may be a tuple, sqlite3.Row or dict."""
    if isinstance(row, dict):
        return [row[name] for name in columns]
    return list(row)


def _assign(target: Any, fd: FieldDescriptor, value: Any) -> None:
    try:
        converted = adapt_value(fd.annotation, value)
    except ValueError as e:
        raise MappingError(
            f"Cannot convert column {fd.column}={value!r} for field "
            f"{type(target).__name__}.{fd.name}: {e}"
        ) from e
    assign_field(target, fd.name, converted)


def scan_row(descriptor: TypeDescriptor, target: Any, columns: Sequence[str], row: Any) -> Any:
    """Copy the mapped columns of *row* onto *target* and return it."""
    by_column = descriptor.fields_by_column
    for name, value in zip(columns, row_values(columns, row)):
        fd = by_column.get(name)
        if fd is not None:
            _assign(target, fd, value)
    return target
