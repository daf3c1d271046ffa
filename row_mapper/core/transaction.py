"""Transaction management.

A Transaction is opened by ``Session.begin()`` and is active immediately.
Used as a context manager it commits on success and rolls back on exception.
A statement that fails inside the transaction rolls it back before the
error propagates; there are no savepoints and no retries.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from row_mapper.core.cancel import CancelToken
from row_mapper.core.engine import run_statement
from row_mapper.core.exceptions import ExecutionError, TransactionStateError
from row_mapper.core.params import bind_params

if TYPE_CHECKING:
    from row_mapper.core.session import Session

logger = logging.getLogger(__name__)


class _TxState(Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """Explicit transaction on a session's connection."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._connection = session.connection
        self._adapter = session.adapter
        try:
            self._adapter.begin(self._connection)
        except Exception as e:
            raise ExecutionError("BEGIN", str(e)) from e
        self._state = _TxState.ACTIVE
        logger.debug("Transaction started")

    @property
    def state(self) -> str:
        return self._state.value

    @property
    def active(self) -> bool:
        return self._state == _TxState.ACTIVE

    def __enter__(self) -> Transaction:
        self._check_active("enter")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._state == _TxState.ACTIVE:
            if exc_type is not None:
                self.rollback()
            else:
                self.commit()

    def run(self, sql: str, *, token: CancelToken | None = None) -> Any:
        """Execute rendered *sql* inside the transaction and return the cursor.

        On failure the transaction is rolled back and ExecutionError is raised.
        """
        self._check_active("execute")
        try:
            return run_statement(
                self._adapter, self._connection, sql, token=token, debug=self._session.debug
            )
        except ExecutionError:
            self._rollback_after_failure()
            raise

    def execute(self, sql: str, param: Any = None, *, token: CancelToken | None = None) -> int:
        """Bind *param* into *sql*, execute it and return the affected row count."""
        sql = bind_params(sql, self._session.dialect, param, self._session.registry)
        cursor = self.run(sql, token=token)
        return int(cursor.rowcount)

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        self._check_active("commit")
        try:
            self._connection.commit()
        except Exception as e:
            self._rollback_after_failure()
            raise ExecutionError("COMMIT", str(e)) from e
        self._state = _TxState.COMMITTED
        logger.debug("Transaction committed")

    def rollback(self) -> None:
        """Explicitly roll back the transaction."""
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "rollback")
        if self._state == _TxState.ROLLED_BACK:
            return
        self._state = _TxState.ROLLED_BACK
        try:
            self._connection.rollback()
        except Exception as e:
            raise ExecutionError("ROLLBACK", str(e)) from e
        logger.debug("Transaction rolled back")

    def _rollback_after_failure(self) -> None:
        self._state = _TxState.ROLLED_BACK
        try:
            self._connection.rollback()
        except Exception:
            logger.exception("Rollback after failed statement also failed")
        else:
            logger.debug("Transaction rolled back after failure")

    def _check_active(self, action: str) -> None:
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, action)
