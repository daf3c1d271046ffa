"""Structural introspection of mapped classes.

Supports dataclasses and Pydantic models. The mapping tag of a field lives in
its metadata under the ``"db"`` key: ``field(metadata={"db": ...})`` for
dataclasses (see :func:`column`), ``Field(json_schema_extra={"db": ...})``
for Pydantic models.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import types
from typing import Annotated, Any, ClassVar, NamedTuple, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from row_mapper.core.exceptions import MappingError

TAG_KEY = "db"

_MISSING: Any = dataclasses.MISSING

_IGNORED_ORIGINS = (
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
    collections.abc.Callable,
)

_ELEMENT_ORIGINS = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.Iterable,
)


class FieldSpec(NamedTuple):
    """A declared attribute of a mapped class, before tag parsing."""

    name: str
    annotation: Any
    tag: str
    default: Any = _MISSING
    default_factory: Any = None


def column(tag: str, **kwargs: Any) -> Any:
    """Declare a dataclass field carrying a mapping tag.

    Usage:
        id: int = column("id,primarykey,autoincrement,table=users", default=0)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def is_pydantic_model(cls: Any) -> bool:
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def is_mapped_class(cls: Any) -> bool:
    return isinstance(cls, type) and (dataclasses.is_dataclass(cls) or is_pydantic_model(cls))


def assign_field(target: Any, name: str, value: Any) -> None:
    """Set a mapped attribute, bypassing frozen dataclasses and models."""
    if dataclasses.is_dataclass(target) or (
        isinstance(target, BaseModel) and target.model_config.get("frozen")
    ):
        object.__setattr__(target, name, value)
    else:
        setattr(target, name, value)


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip ``Optional``/``X | None`` and ``Annotated``; report nullability."""
    origin = get_origin(annotation)
    if origin is Annotated:
        return unwrap_optional(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1:
            return rest[0], len(rest) != len(args)
        return annotation, len(rest) != len(args)
    return annotation, False


def resolve_class(target: Any) -> type:
    """Reduce *target* to the mapped class it refers to.

    ``T``, ``Optional[T]``, ``list[T]``, ``tuple[T, ...]`` and instances of
    ``T`` all resolve to ``T``.
    """
    if not isinstance(target, type) and get_origin(target) is None and not isinstance(
        target, types.UnionType
    ):
        target = type(target)
    while True:
        target, _ = unwrap_optional(target)
        origin = get_origin(target)
        if origin in _ELEMENT_ORIGINS and get_args(target):
            target = get_args(target)[0]
            continue
        break
    if not is_mapped_class(target):
        raise MappingError(f"{target!r} is not a mapped type (dataclass or pydantic model)")
    return target


def is_ignored(annotation: Any) -> bool:
    """True for field kinds that can never be mapped (callables, mappings, Any, protocols)."""
    base, _ = unwrap_optional(annotation)
    if base is Any:
        return True
    origin = get_origin(base) or base
    if origin is ClassVar:
        return True
    if origin in _IGNORED_ORIGINS:
        return True
    return isinstance(origin, type) and bool(getattr(origin, "_is_protocol", False))


def list_element(annotation: Any) -> type | None:
    """Return ``T`` for ``list[T]`` (optionally ``Optional``), else None."""
    base, _ = unwrap_optional(annotation)
    if get_origin(base) is not list:
        return None
    args = get_args(base)
    if not args:
        return None
    elem, _ = unwrap_optional(args[0])
    return elem if is_mapped_class(elem) else None


def reference_target(annotation: Any) -> type | None:
    """Return ``T`` for ``T`` or ``Optional[T]`` when ``T`` is mapped, else None."""
    base, _ = unwrap_optional(annotation)
    return base if is_mapped_class(base) else None


def declared_fields(cls: type) -> list[FieldSpec]:
    """List the declared fields of *cls* in declaration order."""
    if is_pydantic_model(cls):
        specs: list[FieldSpec] = []
        for name, info in cls.model_fields.items():  # type: ignore[attr-defined]
            extra = info.json_schema_extra
            tag = extra.get(TAG_KEY, "") if isinstance(extra, dict) else ""
            default = _MISSING if info.is_required() or info.default_factory else info.default
            specs.append(
                FieldSpec(name, info.annotation, str(tag), default, info.default_factory)
            )
        return specs

    try:
        hints = get_type_hints(cls)
    except NameError as e:
        raise MappingError(f"Cannot resolve annotations of {cls.__name__}: {e}") from e
    specs = []
    for f in dataclasses.fields(cls):
        factory = None if f.default_factory is dataclasses.MISSING else f.default_factory
        specs.append(
            FieldSpec(f.name, hints.get(f.name, f.type), str(f.metadata.get(TAG_KEY, "")), f.default, factory)
        )
    return specs


def zero_value(spec: FieldSpec) -> Any:
    """Value of a field that no column populated."""
    if spec.default is not _MISSING:
        return spec.default
    if spec.default_factory is not None:
        return spec.default_factory()
    base, optional = unwrap_optional(spec.annotation)
    if optional:
        return None
    origin = get_origin(base) or base
    if origin in (bool, int, float, str, bytes, list, tuple, set, frozenset, dict):
        return origin()
    return None
