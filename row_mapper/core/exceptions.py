"""RowMapper exception hierarchy.

All exceptions are RowMapper-specific. Driver exceptions are wrapped in
ExecutionError and chained, never exposed bare to callers.
"""

from __future__ import annotations


class RowMapperError(Exception):
    """Base exception for all RowMapper errors."""


# --- Mapping ---


class MappingError(RowMapperError):
    """Raised when a type cannot be described (bad tags, unresolvable hints)."""


class AssociationShapeError(MappingError):
    """Raised when an association field has the wrong annotation shape."""

    def __init__(self, type_name: str, field_name: str, expected: str) -> None:
        self.type_name = type_name
        self.field_name = field_name
        super().__init__(f"Association {type_name}.{field_name} must be annotated as {expected}")


class UnsupportedTypeError(RowMapperError):
    """Raised when a value cannot be rendered as an SQL literal."""

    def __init__(self, value: object) -> None:
        self.value_type = type(value)
        super().__init__(f"SQL quoting for type {type(value).__name__} is not supported")


# --- Statements ---


class StatementError(RowMapperError):
    """Base for statement generation errors."""


class NoTableNameError(StatementError):
    """Raised when a write is attempted on a type without a table name."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"No table name specified for {type_name}")


class NoPrimaryKeyError(StatementError):
    """Raised when an operation needs a primary key the type does not declare."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"No primary key column specified for {type_name}")


# --- Execution ---


class ExecutionError(RowMapperError):
    """Raised when the database rejects a statement."""

    def __init__(self, sql: str, detail: str) -> None:
        self.sql = sql
        super().__init__(f"Execution failed: {detail} [{sql}]")


class NoRowsError(ExecutionError):
    """Raised when a single-row or scalar fetch matches nothing."""

    def __init__(self, sql: str) -> None:
        super().__init__(sql, "no rows in result set")


class WrongTypeError(ExecutionError):
    """Raised when a scalar result cannot be represented as the requested type."""

    def __init__(self, sql: str, expected: str, got: object) -> None:
        self.expected = expected
        self.got = got
        super().__init__(sql, f"expected {expected}, got {type(got).__name__} {got!r}")


class QueryCancelledError(ExecutionError):
    """Raised when a statement is cancelled through its CancelToken."""

    def __init__(self, sql: str = "") -> None:
        super().__init__(sql, "statement cancelled")


# --- Transaction ---


class TransactionError(RowMapperError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Migration ---


class MigrationError(RowMapperError):
    """Base for migration errors."""


class MigrationFileError(MigrationError):
    """Raised for invalid migration file naming."""

    def __init__(self, file_name: str, detail: str) -> None:
        self.file_name = file_name
        super().__init__(f"Invalid migration file '{file_name}': {detail}")


class MigrationExecutionError(MigrationError):
    """Raised when a migration fails to execute."""

    def __init__(self, version: int, detail: str) -> None:
        self.version = version
        super().__init__(f"Migration {version} failed: {detail}")


# --- Adapter ---


class AdapterError(RowMapperError):
    """Raised when a database adapter cannot be loaded."""
