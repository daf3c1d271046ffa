"""Parameter substitution.

``:name`` placeholders are replaced by quoted literals of the matching
attribute (or dict entry) of the parameter value. Substitution is textual,
not word-boundary aware: ``:Id`` also matches the head of ``:Identifier``.
Longer names are tried first, so when both ``Id`` and ``IdCategory`` are
bound, ``:IdCategory`` resolves to ``IdCategory``. Inserted literals are
never re-scanned.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Mapping

from row_mapper.core.dialect import Dialect
from row_mapper.core.quote import quote

if TYPE_CHECKING:
    from row_mapper.mapping.registry import TypeRegistry


@lru_cache(maxsize=256)
def _placeholder_pattern(names: tuple[str, ...]) -> re.Pattern[str]:
    return re.compile(":(" + "|".join(re.escape(name) for name in names) + ")")


def param_values(param: Any, registry: TypeRegistry) -> dict[str, Any]:
    """Name -> value pairs available for binding; transient fields excluded."""
    if isinstance(param, Mapping):
        return dict(param)
    descriptor = registry.describe(param)
    return {fd.name: getattr(param, fd.name) for fd in descriptor.fields if not fd.is_transient}


def bind_params(sql: str, dialect: Dialect, param: Any, registry: TypeRegistry) -> str:
    """Inline *param* into *sql*. ``None`` means no binding."""
    if param is None:
        return sql
    values = param_values(param, registry)
    names = tuple(sorted((name for name in values if f":{name}" in sql), key=len, reverse=True))
    if not names:
        return sql
    return _placeholder_pattern(names).sub(lambda m: quote(dialect, values[m.group(1)]), sql)
