"""
Tablekit exception classes.

Generation errors are fatal for a run, query-build errors are recoverable
values carried by `QueryBuildError`, and driver errors propagate unchanged.
The driver tuples group SQLAlchemy wrappers with the DBAPI classes they wrap.
"""
import enum
import sqlite3

import mysql.connector
import psycopg
import sqlalchemy as sa


class TablekitError(Exception):
    """Base class for all tablekit errors.
    """


class GenerationError(TablekitError):
    """Error raised while generating records from a schema.
    """


class UnsupportedColumnTypeError(GenerationError):
    """A column type token has no semantic mapping.

    Aborts the whole generation run.
    """

    def __init__(self, table: str, column: str, definition: str):
        self.table = table
        self.column = column
        self.definition = definition
        super().__init__(f'Unsupported column type {definition!r} for {table}.{column}')


class IntrospectionError(GenerationError):
    """Error reading schema metadata from the store.
    """


class ConfigurationError(TablekitError):
    """Shared state was set twice or read before being set.
    """


class ProcessorError(TablekitError):
    """A field processor failed.
    """

    def __init__(self, table: str, column: str, stage: str, message: str):
        self.table = table
        self.column = column
        self.stage = stage
        super().__init__(f'{stage} processor failed for {table}.{column}: {message}')


class BuildErrorKind(enum.Enum):
    """Reason a statement could not be built.
    """
    MISSING_OPERATION = 'MissingOperation'
    MISSING_CONDITION = 'MissingCondition'
    MISSING_TARGET_TABLE = 'MissingTargetTable'
    MISSING_FIELDS = 'MissingFields'
    MISSING_VALUES = 'MissingValues'
    OTHER_ERROR = 'OtherError'


class QueryBuildError(TablekitError):
    """Statement validation failure.
    """

    def __init__(self, kind: BuildErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f'{kind.value}: {message}')

    def __eq__(self, other):
        if not isinstance(other, QueryBuildError):
            return NotImplemented
        return self.kind == other.kind and self.message == other.message

    def __hash__(self):
        return hash((self.kind, self.message))


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    mysql.connector.errors.OperationalError,
    mysql.connector.errors.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    sa.exc.OperationalError,
    sa.exc.InterfaceError,
    )

IntegrityError = (
    psycopg.IntegrityError,
    mysql.connector.errors.IntegrityError,
    sqlite3.IntegrityError,
    sa.exc.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    mysql.connector.errors.ProgrammingError,
    sqlite3.ProgrammingError,
    sa.exc.ProgrammingError,
    )
