"""
PostgreSQL-specific strategy implementation.

Column definitions are rebuilt from `information_schema.columns`. Enum
types are expanded from `pg_enum` into `enum('a','b')` text, and arrays of
an enum type into `set('a','b')`, so the resolver sees one uniform shape
across dialects.
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from tablekit.cache import cacheable_strategy
from tablekit.strategy.base import DialectStrategy, register_strategy
from tablekit.types import ColumnSchema

if TYPE_CHECKING:
    from tablekit.options import DatabaseOptions

logger = logging.getLogger(__name__)

_COLUMNS_SQL = """
select
    c.column_name,
    c.data_type,
    c.udt_name,
    c.character_maximum_length,
    c.is_nullable,
    (
        select string_agg(quote_literal(e.enumlabel), ',' order by e.enumsortorder)
        from pg_type t
        join pg_enum e on e.enumtypid = t.oid
        where t.typname = ltrim(c.udt_name, '_')
    ) as enum_labels,
    exists (
        select 1
        from information_schema.table_constraints tc
        join information_schema.key_column_usage k
          on k.constraint_name = tc.constraint_name
         and k.table_schema = tc.table_schema
         and k.table_name = tc.table_name
        where tc.constraint_type = 'PRIMARY KEY'
          and tc.table_schema = c.table_schema
          and tc.table_name = c.table_name
          and k.column_name = c.column_name
    ) as is_primary_key
from information_schema.columns c
where c.table_schema = current_schema()
  and c.table_name = :table
order by c.ordinal_position
"""


def column_definition(row: dict) -> str:
    """Rebuild a MySQL-style type definition from an information_schema row.
    """
    if row['enum_labels']:
        wrapper = 'set' if row['data_type'] == 'ARRAY' else 'enum'
        return f"{wrapper}({row['enum_labels']})"
    udt = row['udt_name']
    if row['character_maximum_length']:
        return f"{udt}({row['character_maximum_length']})"
    return udt


@register_strategy('postgresql')
class PostgresStrategy(DialectStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        if options.appname:
            query['application_name'] = options.appname
        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or 5432,
            database=options.database,
            query=query,
        )

    def configure_connection(self, dbapi_conn: Any, options: 'DatabaseOptions') -> None:
        """Set the session time zone when one is configured.
        """
        if options.timezone is None:
            return
        # POSIX zone names invert the sign: 'UTC-8' is eight hours ahead
        zone = f'UTC{-options.timezone:+d}'
        with dbapi_conn.cursor() as cursor:
            cursor.execute(f"SET TIME ZONE '{zone}'")
        dbapi_conn.commit()

    @classmethod
    def get_required_options(cls) -> list[str]:
        return ['hostname', 'username', 'password', 'database', 'port']

    def boolean_literal(self, value: bool) -> str:
        return 'TRUE' if value else 'FALSE'

    def binary_literal(self, value: bytes) -> str:
        return f"'\\x{bytes(value).hex()}'::bytea"

    def list_tables(self, cn: sa.Connection) -> list[str]:
        sql = """
select table_name from information_schema.tables
where table_schema = current_schema() and table_type = 'BASE TABLE'
order by table_name
"""
        return self._select_column_raw(cn, sql)

    @cacheable_strategy('table_columns', ttl=300, maxsize=50)
    def describe_table(self, cn: sa.Connection, table: str,
                       bypass_cache: bool = False) -> list[ColumnSchema]:
        """Describe a table from information_schema and pg_enum.
        """
        rows = self._select_raw(cn, _COLUMNS_SQL, {'table': table})
        return [
            ColumnSchema(
                name=row['column_name'],
                raw_type=column_definition(row),
                nullable=row['is_nullable'] == 'YES',
                is_primary_key=bool(row['is_primary_key']),
            )
            for row in rows
        ]

    def render_date_add(self, column_sql: str, amount: int, unit: str) -> str:
        return f"({column_sql} + interval '{int(amount)} {unit.lower()}')"

    def render_find_in_set(self, value_sql: str, column_sql: str) -> str:
        return f'{value_sql} = any({column_sql})'

    def build_upsert_sql(self, table: str, columns: list[str], values: list[str],
                         key_columns: list[str]) -> str:
        return self._build_on_conflict_sql(table, columns, values, key_columns)
