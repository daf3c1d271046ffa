"""Batched association resolution.

Given fully scanned parents and the association names to load, every
(far table, association) pair costs exactly one ``IN`` query regardless of
the number of parents. Children are matched to their parents in memory by
a linear scan (parents x children, no index). Only the requested
associations of the parents are loaded; those of the loaded children are not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from row_mapper.core.dialect import Dialect
from row_mapper.core.exceptions import AssociationShapeError, NoPrimaryKeyError
from row_mapper.core.query import Q
from row_mapper.mapping.descriptor import OneToMany, OneToOne, TypeDescriptor
from row_mapper.mapping.introspect import assign_field
from row_mapper.mapping.registry import TypeRegistry

logger = logging.getLogger(__name__)

# fetch(sql, cls) -> scanned instances of cls, associations not resolved
Fetch = Callable[[str, type], list[Any]]


@dataclass
class _Batch:
    association: OneToOne | OneToMany
    parents: list[Any] = field(default_factory=list)
    keys: dict[Any, None] = field(default_factory=dict)  # insertion-ordered set


def _parent_key(descriptor: TypeDescriptor, parent: Any) -> Any:
    pk = descriptor.primary_key()
    if pk is None:
        raise NoPrimaryKeyError(descriptor.type.__name__)
    return getattr(parent, pk.name)


def _collect(
    parents: Sequence[Any], names: Sequence[str], registry: TypeRegistry
) -> dict[tuple[str, str], _Batch]:
    batches: dict[tuple[str, str], _Batch] = {}
    for parent in parents:
        descriptor = registry.describe(parent)
        for name in names:
            many = descriptor.one_to_many.get(name)
            if many is not None:
                if many.elem_type is None:
                    raise AssociationShapeError(descriptor.type.__name__, name, "list[T] of a mapped type")
                key = _parent_key(descriptor, parent)
                batch = batches.setdefault((many.table_name(registry), name), _Batch(many))
            else:
                one = descriptor.one_to_one.get(name)
                if one is None:
                    continue
                if one.target_type is None:
                    raise AssociationShapeError(descriptor.type.__name__, name, "T or Optional[T] of a mapped type")
                key = getattr(parent, one.foreign_key_field)
                batch = batches.setdefault((one.table_name(registry), name), _Batch(one))
            batch.parents.append(parent)
            if key is not None:
                batch.keys[key] = None
    return batches


def _load_many(batch: _Batch, assoc: OneToMany, registry: TypeRegistry, dialect: Dialect, fetch: Fetch) -> None:
    children: list[Any] = []
    if batch.keys:
        sql = (
            Q(dialect, assoc.table_name(registry))
            .where()
            .in_(assoc.column_name(registry), list(batch.keys))
            .sql()
        )
        children = fetch(sql, assoc.element())
    for parent in batch.parents:
        key = _parent_key(registry.describe(parent), parent)
        assign_field(
            parent,
            assoc.name,
            [child for child in children if getattr(child, assoc.foreign_key_field) == key],
        )


def _load_one(batch: _Batch, assoc: OneToOne, registry: TypeRegistry, dialect: Dialect, fetch: Fetch) -> None:
    if not batch.keys:
        return
    target = registry.describe(assoc.target())
    pk = target.primary_key()
    if pk is None:
        raise NoPrimaryKeyError(target.type.__name__)
    sql = Q(dialect, target.table_name).where().in_(pk.column, list(batch.keys)).sql()
    rows = fetch(sql, target.type)
    for parent in batch.parents:
        key = getattr(parent, assoc.foreign_key_field)
        match = next((row for row in rows if getattr(row, pk.name) == key), None)
        if match is not None:
            assign_field(parent, assoc.name, match)


def resolve_associations(
    parents: Sequence[Any],
    names: Sequence[str],
    *,
    registry: TypeRegistry,
    dialect: Dialect,
    fetch: Fetch,
) -> None:
    """Load the associations *names* onto *parents* in place.

    Names not declared as an association on a parent's type are ignored.

    Raises:
        AssociationShapeError: If an association field has the wrong annotation.
        NoPrimaryKeyError: If a one-to-many parent or one-to-one target has no primary key.
    """
    if not parents or not names:
        return
    for (table, name), batch in _collect(parents, names, registry).items():
        logger.debug(
            "Resolving %s from %s for %d parent(s), %d key(s)",
            name, table, len(batch.parents), len(batch.keys),
        )
        if isinstance(batch.association, OneToMany):
            _load_many(batch, batch.association, registry, dialect, fetch)
        else:
            _load_one(batch, batch.association, registry, dialect, fetch)
