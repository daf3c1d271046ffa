"""Type registry - describes mapped classes and caches the result.

Tag grammar (the ``"db"`` metadata entry of a field):
    col                          column name
    col,primarykey               primary key (alias: pk)
    col,autoincrement            database-generated value (alias: serial)
    col,table=users              table name of the type (last occurrence wins)
    -                            transient: never read or written
    oneToOne=AuthorID            reference keyed by local attribute AuthorID
    oneToMany=OrderID            children whose attribute OrderID holds our key

Fields without a tag map to a column named after the field. Callables,
mappings, ``Any``, protocols and class variables are skipped entirely.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Any

from row_mapper.core.exceptions import MappingError
from row_mapper.mapping.descriptor import (
    FieldDescriptor,
    OneToMany,
    OneToOne,
    TypeDescriptor,
)
from row_mapper.mapping.introspect import (
    FieldSpec,
    declared_fields,
    is_ignored,
    list_element,
    reference_target,
    resolve_class,
)

logger = logging.getLogger(__name__)

_PRIMARY_KEY = ("primarykey", "pk")
_AUTOINCREMENT = ("autoincrement", "serial")


class TypeRegistry:
    """Thread-safe cache of TypeDescriptors, keyed by class.

    Descriptors are built on first use and never evicted. Concurrent callers
    describing the same class observe the same descriptor object.
    """

    def __init__(self) -> None:
        self._descriptors: dict[type, TypeDescriptor] = {}
        self._lock = threading.RLock()

    def describe(self, target: Any) -> TypeDescriptor:
        """Return the descriptor for *target*.

        Args:
            target: A mapped class, an instance of one, or a container hint
                such as ``Optional[T]`` or ``list[T]``.

        Raises:
            MappingError: If the target is not a mapped type or its tags are invalid.
        """
        cls = resolve_class(target)
        descriptor = self._descriptors.get(cls)
        if descriptor is not None:
            return descriptor
        with self._lock:
            descriptor = self._descriptors.get(cls)
            if descriptor is None:
                descriptor = _build(cls)
                self._descriptors[cls] = descriptor
                logger.debug("Described %s as table %r", cls.__name__, descriptor.table_name)
            return descriptor

    def __contains__(self, cls: object) -> bool:
        return cls in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


default_registry = TypeRegistry()


def _association_key(cls: type, spec: FieldSpec, kind: str) -> str:
    name, sep, value = spec.tag.partition("=")
    value = value.strip()
    if name.strip() != kind or not sep or not value:
        raise MappingError(
            f"Invalid {kind} specification for {cls.__name__}.{spec.name}: {spec.tag!r}"
        )
    return value


def _build(cls: type) -> TypeDescriptor:
    table_name = ""
    fields: list[FieldDescriptor] = []
    one_to_one: dict[str, OneToOne] = {}
    one_to_many: dict[str, OneToMany] = {}
    associations: list[str] = []

    for spec in declared_fields(cls):
        if is_ignored(spec.annotation):
            continue
        tag = spec.tag.strip()

        if tag.startswith("oneToMany"):
            fk = _association_key(cls, spec, "oneToMany")
            one_to_many[spec.name] = OneToMany(spec.name, spec.annotation, list_element(spec.annotation), fk)
            associations.append(spec.name)
            continue
        if tag.startswith("oneToOne"):
            fk = _association_key(cls, spec, "oneToOne")
            one_to_one[spec.name] = OneToOne(spec.name, spec.annotation, reference_target(spec.annotation), fk)
            associations.append(spec.name)
            continue

        if not tag:
            fields.append(FieldDescriptor(spec.name, spec.name, spec.annotation))
            continue
        if tag == "-":
            fields.append(FieldDescriptor(spec.name, "", spec.annotation, is_transient=True))
            continue

        column, *modifiers = (part.strip() for part in tag.split(","))
        is_pk = is_auto = False
        for modifier in modifiers:
            if modifier in _PRIMARY_KEY:
                is_pk = True
            elif modifier in _AUTOINCREMENT:
                is_auto = True
            elif modifier.startswith("table"):
                _, sep, name = modifier.partition("=")
                if not sep or not name.strip():
                    raise MappingError(f"Invalid table specification for {cls.__name__}.{spec.name}: {tag!r}")
                table_name = name.strip()
        fields.append(FieldDescriptor(spec.name, column or spec.name, spec.annotation, is_pk, is_auto))

    _check_unique(cls, fields)
    for assoc in one_to_one.values():
        if assoc.foreign_key_field not in {fd.name for fd in fields}:
            raise MappingError(
                f"oneToOne field {cls.__name__}.{assoc.name} refers to unknown field "
                f"{assoc.foreign_key_field!r}"
            )

    return TypeDescriptor(
        type=cls,
        table_name=table_name,
        fields=tuple(fields),
        one_to_one=MappingProxyType(one_to_one),
        one_to_many=MappingProxyType(one_to_many),
        association_names=tuple(associations),
    )


def _check_unique(cls: type, fields: list[FieldDescriptor]) -> None:
    pks = [fd.name for fd in fields if fd.is_primary_key]
    if len(pks) > 1:
        raise MappingError(f"{cls.__name__} declares more than one primary key: {', '.join(pks)}")
    autos = [fd.name for fd in fields if fd.is_autoincrement]
    if len(autos) > 1:
        raise MappingError(f"{cls.__name__} declares more than one autoincrement field: {', '.join(autos)}")
