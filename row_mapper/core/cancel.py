"""Cooperative cancellation for statements."""

from __future__ import annotations

import threading
import time

from row_mapper.core.exceptions import QueryCancelledError


class CancelToken:
    """Cancellation signal shared between a caller and running statements.

    A token is cancelled explicitly with :meth:`cancel` or implicitly once
    *timeout* seconds have elapsed since it was created.

    Args:
        timeout: Optional deadline in seconds, measured from construction.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False

    def raise_if_cancelled(self, sql: str = "") -> None:
        if self.cancelled:
            raise QueryCancelledError(sql)
