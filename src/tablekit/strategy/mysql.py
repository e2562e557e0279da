"""
MySQL-specific strategy implementation.

Connects through mysql-connector-python and introspects with
`SHOW TABLES` / `DESCRIBE`, whose `Type` column already carries the full
declaration text (`enum('a','b')`, `bigint(20) unsigned`, ...).
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


def _text(value: Any) -> str:
    """mysql-connector may hand back DESCRIBE cells as bytes."""
    if isinstance(value, bytes | bytearray):
        return value.decode()
    return value


def format_utc_offset(hours: int) -> str:
    """Format an hour offset as `+08:00` / `-05:00`.
    """
    sign = '-' if hours < 0 else '+'
    return f'{sign}{abs(hours):02d}:00'


@register_strategy('mysql')
class MySQLStrategy(DialectStrategy):
    """MySQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        return 'mysql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for MySQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        return sa.URL.create(
            drivername='mysql+mysqlconnector',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or 3306,
            database=options.database,
            query=query,
        )

    def configure_connection(self, dbapi_conn: Any, options: 'DatabaseOptions') -> None:
        """Set the session time zone when one is configured.
        """
        if options.timezone is None:
            return
        cursor = dbapi_conn.cursor()
        try:
            cursor.execute(f"SET time_zone = '{format_utc_offset(options.timezone)}'")
        finally:
            cursor.close()

    @classmethod
    def get_required_options(cls) -> list[str]:
        return ['hostname', 'username', 'password', 'database']

    def quote_identifier(self, identifier: str) -> str:
        return '`' + identifier.replace('`', '``') + '`'

    def quote_literal(self, value: str) -> str:
        """Quote a text literal.

        MySQL treats backslash as an escape inside strings, so it is
        doubled along with single quotes.
        """
        escaped = str(value).replace('\\', '\\\\').replace("'", "''")
        return f"'{escaped}'"

    def list_tables(self, cn: sa.Connection) -> list[str]:
        return [_text(t) for t in self._select_column_raw(cn, 'SHOW TABLES')]

    @cacheable_strategy('table_columns', ttl=300, maxsize=50)
    def describe_table(self, cn: sa.Connection, table: str,
                       bypass_cache: bool = False) -> list[ColumnSchema]:
        """Describe a table with `DESCRIBE`.
        """
        rows = self._select_raw(cn, f'DESCRIBE {self.quote_identifier(table)}')
        return [
            ColumnSchema(
                name=_text(row['Field']),
                raw_type=_text(row['Type']),
                nullable=_text(row['Null']) == 'YES',
                is_primary_key=_text(row['Key']) == 'PRI',
            )
            for row in rows
        ]

    def render_date_add(self, column_sql: str, amount: int, unit: str) -> str:
        return f'DATE_ADD({column_sql}, INTERVAL {int(amount)} {unit})'

    def render_find_in_set(self, value_sql: str, column_sql: str) -> str:
        return f'FIND_IN_SET({value_sql}, {column_sql}) > 0'

    def build_upsert_sql(self, table: str, columns: list[str], values: list[str],
                         key_columns: list[str]) -> str:
        """Upsert with `on duplicate key update`.
        """
        head = self.build_insert_sql(table, columns, values)
        updates = self._update_columns(columns, key_columns) or columns[:1]
        sets = ', '.join(f'{c} = values({c})' for c in updates)
        return f'{head} on duplicate key update {sets}'
