"""RowMapper - tag-driven mapping between Python classes and SQL tables."""

from __future__ import annotations

from row_mapper.core.cancel import CancelToken
from row_mapper.core.connection import ConnectionConfig, connect
from row_mapper.core.dialect import MYSQL, POSTGRESQL, SQLITE3, Dialect, dialect_for
from row_mapper.core.engine import Finder, GetRequest
from row_mapper.core.enums import DatabaseBackend
from row_mapper.core.exceptions import (
    AdapterError,
    AssociationShapeError,
    ExecutionError,
    MappingError,
    MigrationError,
    MigrationExecutionError,
    MigrationFileError,
    NoPrimaryKeyError,
    NoRowsError,
    NoTableNameError,
    QueryCancelledError,
    RowMapperError,
    StatementError,
    TransactionError,
    TransactionStateError,
    UnsupportedTypeError,
    WrongTypeError,
)
from row_mapper.core.migration import MigrationInfo, MigrationManager, SchemaMigration
from row_mapper.core.query import Q, SafeSqlString
from row_mapper.core.quote import quote
from row_mapper.core.session import Session
from row_mapper.core.transaction import Transaction
from row_mapper.mapping.introspect import column
from row_mapper.mapping.registry import TypeRegistry, default_registry

__all__ = [
    # Session
    "Session",
    "Finder",
    "GetRequest",
    "Transaction",
    "CancelToken",
    # Connection
    "ConnectionConfig",
    "connect",
    # Mapping
    "TypeRegistry",
    "default_registry",
    "column",
    # SQL
    "Dialect",
    "MYSQL",
    "SQLITE3",
    "POSTGRESQL",
    "dialect_for",
    "quote",
    "Q",
    "SafeSqlString",
    # Migration
    "MigrationManager",
    "MigrationInfo",
    "SchemaMigration",
    # Enums
    "DatabaseBackend",
    # Exceptions
    "RowMapperError",
    "MappingError",
    "AssociationShapeError",
    "UnsupportedTypeError",
    "StatementError",
    "NoTableNameError",
    "NoPrimaryKeyError",
    "ExecutionError",
    "NoRowsError",
    "WrongTypeError",
    "QueryCancelledError",
    "TransactionError",
    "TransactionStateError",
    "MigrationError",
    "MigrationFileError",
    "MigrationExecutionError",
    "AdapterError",
]
