"""
Base strategy interface for dialect-specific behavior.

Each concrete strategy knows how its dialect connects, how to introspect
tables and columns, and how to spell the few SQL fragments that differ
between dialects (boolean literals, date arithmetic, set membership,
upserts, identifier and literal quoting).
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from tablekit.cache import cacheable_strategy
from tablekit.types import ColumnSchema

if TYPE_CHECKING:
    from tablekit.options import DatabaseOptions

# Registry of dialect name -> strategy class
_STRATEGY_REGISTRY: dict[str, type['DialectStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('mysql')
        class MySQLStrategy(DialectStrategy):
            ...
    """
    def decorator(cls: type['DialectStrategy']) -> type['DialectStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DialectStrategy(ABC):
    """Base class for dialect-specific operations.
    """

    def _select_raw(self, cn: sa.Connection, sql: str,
                    params: dict[str, Any] | None = None) -> list[dict]:
        """Execute SQL and return rows as plain dicts.
        """
        result = cn.execute(sa.text(sql), params or {})
        return [dict(row) for row in result.mappings().all()]

    def _select_column_raw(self, cn: sa.Connection, sql: str,
                           params: dict[str, Any] | None = None) -> list:
        """Execute SQL and return the first column as a list.
        """
        result = cn.execute(sa.text(sql), params or {})
        return [row[0] for row in result.all()]

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy URL for `options`.
        """

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return extra `create_engine` keyword arguments.
        """
        return {}

    @abstractmethod
    def configure_connection(self, dbapi_conn: Any, options: 'DatabaseOptions') -> None:
        """Apply per-session settings to a fresh DBAPI connection.

        Args:
            dbapi_conn: The raw DBAPI connection handed out by the pool
            options: Options the engine was created with
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.

        Returns
            List of field names that must have non-None/non-zero values
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    @abstractmethod
    def list_tables(self, cn: sa.Connection) -> list[str]:
        """Return table names in the connected schema.
        """

    @abstractmethod
    @cacheable_strategy('table_columns', ttl=300, maxsize=50)
    def describe_table(self, cn: sa.Connection, table: str,
                       bypass_cache: bool = False) -> list[ColumnSchema]:
        """Return ordered column descriptors for a table.

        Args:
            cn: SQLAlchemy connection
            table: Table name to describe
            bypass_cache: If True, bypass cache and query database directly

        Returns
            list: ColumnSchema per column, in declaration order
        """

    def get_primary_keys(self, cn: sa.Connection, table: str,
                         bypass_cache: bool = False) -> list[str]:
        """Get primary key columns for a table.
        """
        columns = self.describe_table(cn, table, bypass_cache=bypass_cache)
        return [c.name for c in columns if c.is_primary_key]

    def quote_identifier(self, identifier: str) -> str:
        """Quote an identifier with double quotes.
        """
        return '"' + identifier.replace('"', '""') + '"'

    def quote_literal(self, value: str) -> str:
        """Quote a text literal, doubling embedded single quotes.
        """
        return "'" + str(value).replace("'", "''") + "'"

    def boolean_literal(self, value: bool) -> str:
        return '1' if value else '0'

    def binary_literal(self, value: bytes) -> str:
        return f"X'{bytes(value).hex()}'"

    @abstractmethod
    def render_date_add(self, column_sql: str, amount: int, unit: str) -> str:
        """Render `column + amount unit` date arithmetic.

        Args:
            column_sql: Rendered column reference
            amount: Signed number of units
            unit: One of `YEAR`, `MONTH`, `DAY`
        """

    @abstractmethod
    def render_find_in_set(self, value_sql: str, column_sql: str) -> str:
        """Render a membership test of a quoted value in a comma-separated set column.
        """

    @abstractmethod
    def build_upsert_sql(self, table: str, columns: list[str], values: list[str],
                         key_columns: list[str]) -> str:
        """Generate dialect-specific upsert SQL.

        Args:
            table: Target table name
            columns: Columns to insert
            values: Rendered value expressions, parallel to `columns`
            key_columns: Primary-key columns; never updated on conflict

        Returns
            str: Complete upsert SQL statement
        """

    def _update_columns(self, columns: list[str], key_columns: list[str]) -> list[str]:
        return [c for c in columns if c not in key_columns]

    def build_insert_sql(self, table: str, columns: list[str], values: list[str]) -> str:
        return f"insert into {table} ({', '.join(columns)}) values ({', '.join(values)})"

    def _build_on_conflict_sql(self, table: str, columns: list[str], values: list[str],
                               key_columns: list[str]) -> str:
        """`on conflict ... do update` form shared by PostgreSQL and SQLite.
        """
        if not key_columns:
            raise ValueError(f'upsert into {table} needs a primary key')
        head = self.build_insert_sql(table, columns, values)
        updates = self._update_columns(columns, key_columns)
        if not updates:
            return f"{head} on conflict ({', '.join(key_columns)}) do nothing"
        sets = ', '.join(f'{c} = excluded.{c}' for c in updates)
        return f"{head} on conflict ({', '.join(key_columns)}) do update set {sets}"
