"""Mapping layer - describe classes as tables and move rows in and out of them."""

from __future__ import annotations

from row_mapper.mapping.associations import resolve_associations
from row_mapper.mapping.descriptor import FieldDescriptor, OneToMany, OneToOne, TypeDescriptor
from row_mapper.mapping.introspect import column
from row_mapper.mapping.registry import TypeRegistry, default_registry
from row_mapper.mapping.scan import new_instance, scan_row
from row_mapper.mapping.statements import generate_delete, generate_insert, generate_update

__all__ = [
    "TypeRegistry",
    "default_registry",
    "column",
    "TypeDescriptor",
    "FieldDescriptor",
    "OneToOne",
    "OneToMany",
    "new_instance",
    "scan_row",
    "generate_insert",
    "generate_update",
    "generate_delete",
    "resolve_associations",
]
