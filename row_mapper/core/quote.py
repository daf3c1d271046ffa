"""SQL literal quoting.

Values are rendered inline into statement text, never bound. The set of
supported scalar kinds is closed; anything else raises UnsupportedTypeError.

Date-times are rendered as ``'YYYY-MM-DD HH:MM:SS'``: time zone offsets and
sub-second precision are dropped.
"""

from __future__ import annotations

import datetime
from typing import Any

from row_mapper.core.dialect import Dialect
from row_mapper.core.exceptions import UnsupportedTypeError

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"


def quote(dialect: Dialect, value: Any) -> str:
    """Render *value* as an SQL literal for *dialect*."""
    if value is None:
        return "NULL"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return f"{value:d}"
    if isinstance(value, float):
        return f"{value:f}"
    if isinstance(value, str):
        return f"'{dialect.quote_string(value)}'"
    # datetime before date: datetime is a date subclass
    if isinstance(value, datetime.datetime):
        return f"'{dialect.quote_string(value.strftime(DATETIME_FORMAT))}'"
    if isinstance(value, datetime.date):
        return f"'{dialect.quote_string(value.strftime(DATE_FORMAT))}'"
    raise UnsupportedTypeError(value)
