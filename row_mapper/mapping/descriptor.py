"""Type descriptor data classes.

Frozen records describing how a mapped class corresponds to a table.
Built once by TypeRegistry and read by every SQL-generating and scanning path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from row_mapper.core.exceptions import MappingError, NoPrimaryKeyError

if TYPE_CHECKING:
    from row_mapper.mapping.registry import TypeRegistry


@dataclass(frozen=True)
class FieldDescriptor:
    """Mapping of a single attribute to a column."""

    name: str
    column: str  # "" for transient fields
    annotation: Any
    is_primary_key: bool = False
    is_autoincrement: bool = False
    is_transient: bool = False


@dataclass(frozen=True)
class OneToOne:
    """A reference to one row of another table, keyed by a local attribute."""

    name: str
    annotation: Any
    target_type: type | None  # None when the annotation is not T / Optional[T]
    foreign_key_field: str

    def table_name(self, registry: TypeRegistry) -> str:
        return registry.describe(self.target()).table_name

    def column_name(self, registry: TypeRegistry) -> str:
        """Primary-key column of the referenced table."""
        target = registry.describe(self.target())
        pk = target.primary_key()
        if pk is None:
            raise NoPrimaryKeyError(target.type.__name__)
        return pk.column

    def target(self) -> type:
        if self.target_type is None:
            raise MappingError(f"oneToOne field {self.name} has no mapped target type")
        return self.target_type


@dataclass(frozen=True)
class OneToMany:
    """A collection of rows in another table pointing back at this row."""

    name: str
    annotation: Any
    elem_type: type | None  # None when the annotation is not list[T]
    foreign_key_field: str

    def table_name(self, registry: TypeRegistry) -> str:
        return registry.describe(self.element()).table_name

    def column_name(self, registry: TypeRegistry) -> str:
        """Column of the child attribute holding the parent's primary key."""
        child = registry.describe(self.element())
        fd = child.fields_by_name.get(self.foreign_key_field)
        if fd is None or fd.is_transient:
            raise MappingError(
                f"No column found for field {self.foreign_key_field} in table {child.table_name}"
            )
        return fd.column

    def element(self) -> type:
        if self.elem_type is None:
            raise MappingError(f"oneToMany field {self.name} has no mapped element type")
        return self.elem_type


@dataclass(frozen=True, eq=False)
class TypeDescriptor:
    """Cached mapping metadata for one class."""

    type: type
    table_name: str
    fields: tuple[FieldDescriptor, ...]
    one_to_one: Mapping[str, OneToOne] = field(default_factory=lambda: MappingProxyType({}))
    one_to_many: Mapping[str, OneToMany] = field(default_factory=lambda: MappingProxyType({}))
    association_names: tuple[str, ...] = ()
    fields_by_name: Mapping[str, FieldDescriptor] = field(init=False)
    fields_by_column: Mapping[str, FieldDescriptor] = field(init=False)

    def __post_init__(self) -> None:
        by_name = {fd.name: fd for fd in self.fields}
        by_column = {fd.column: fd for fd in self.fields if not fd.is_transient}
        object.__setattr__(self, "fields_by_name", MappingProxyType(by_name))
        object.__setattr__(self, "fields_by_column", MappingProxyType(by_column))

    @property
    def field_names(self) -> list[str]:
        return [fd.name for fd in self.fields]

    @property
    def column_names(self) -> list[str]:
        return [fd.column for fd in self.fields if not fd.is_transient]

    def primary_key(self) -> FieldDescriptor | None:
        for fd in self.fields:
            if fd.is_primary_key:
                return fd
        return None

    def autoincrement_field(self) -> FieldDescriptor | None:
        for fd in self.fields:
            if fd.is_autoincrement:
                return fd
        return None
