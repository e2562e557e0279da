"""
SQLite-specific strategy implementation.

SQLite keeps the declared column type text verbatim, so `pragma_table_info`
yields the same shape of definition MySQL's `DESCRIBE` does. It has no
`DATE_ADD` or `FIND_IN_SET`; both are rendered with core functions.
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy.pool import StaticPool
from tablekit.cache import cacheable_strategy
from tablekit.strategy.base import DialectStrategy, register_strategy
from tablekit.types import ColumnSchema

if TYPE_CHECKING:
    from tablekit.options import DatabaseOptions

logger = logging.getLogger(__name__)

_DATE_MODIFIER = {'YEAR': 'years', 'MONTH': 'months', 'DAY': 'days'}


@register_strategy('sqlite')
class SQLiteStrategy(DialectStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Share one connection for in-memory databases so tables persist.
        """
        kwargs: dict[str, Any] = {'connect_args': {'check_same_thread': False}}
        if options.database in {':memory:', ''}:
            kwargs['poolclass'] = StaticPool
        return kwargs

    def configure_connection(self, dbapi_conn: Any, options: 'DatabaseOptions') -> None:
        """Enable foreign keys; SQLite has no session time zone.
        """
        dbapi_conn.execute('PRAGMA foreign_keys = ON')
        if options.timezone is not None:
            logger.debug('Ignoring timezone option for SQLite connection')

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def list_tables(self, cn: sa.Connection) -> list[str]:
        sql = """
select name from sqlite_master
where type = 'table' and name not like 'sqlite_%'
order by name
"""
        return self._select_column_raw(cn, sql)

    @cacheable_strategy('table_columns', ttl=300, maxsize=50)
    def describe_table(self, cn: sa.Connection, table: str,
                       bypass_cache: bool = False) -> list[ColumnSchema]:
        """Describe a table with `pragma_table_info`.
        """
        sql = """
select name, type, "notnull", pk from pragma_table_info(:table) order by cid
"""
        rows = self._select_raw(cn, sql, {'table': table})
        return [
            ColumnSchema(
                name=row['name'],
                raw_type=row['type'],
                nullable=not row['notnull'],
                is_primary_key=row['pk'] != 0,
            )
            for row in rows
        ]

    def render_date_add(self, column_sql: str, amount: int, unit: str) -> str:
        modifier = f"'{int(amount):+d} {_DATE_MODIFIER[unit]}'"
        return f'date({column_sql}, {modifier})'

    def render_find_in_set(self, value_sql: str, column_sql: str) -> str:
        return f"instr(',' || {column_sql} || ',', ',' || {value_sql} || ',') > 0"

    def build_upsert_sql(self, table: str, columns: list[str], values: list[str],
                         key_columns: list[str]) -> str:
        return self._build_on_conflict_sql(table, columns, values, key_columns)
