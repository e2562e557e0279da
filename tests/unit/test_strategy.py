"""
Tests for dialect strategies.
"""
import pytest
from sqlalchemy.pool import StaticPool
from tablekit.options import DatabaseOptions
from tablekit.strategy import MySQLStrategy, PostgresStrategy, SQLiteStrategy
from tablekit.strategy import get_available_dialects, get_strategy
from tablekit.strategy.mysql import format_utc_offset
from tablekit.strategy.postgres import column_definition
from tablekit.types import ColumnSchema


@pytest.fixture
def mysql_options():
    return DatabaseOptions(drivername='mysql', hostname='db', username='u',
                           password='p', database='shop', timeout=5, timezone=8)


def test_registry():
    assert set(get_available_dialects()) >= {'mysql', 'postgresql', 'sqlite'}
    assert isinstance(get_strategy('mysql'), MySQLStrategy)
    assert get_strategy('sqlite') is get_strategy('sqlite')
    with pytest.raises(ValueError):
        get_strategy('oracle')


def test_mysql_url(mysql_options):
    url = MySQLStrategy().build_connection_url(mysql_options)
    assert url.drivername == 'mysql+mysqlconnector'
    assert url.port == 3306
    assert url.database == 'shop'
    assert url.query['connect_timeout'] == '5'


def test_postgres_url():
    options = DatabaseOptions(drivername='postgresql', hostname='db', username='u',
                              password='p', database='shop', port=5433, appname='gen')
    url = PostgresStrategy().build_connection_url(options)
    assert url.drivername == 'postgresql+psycopg'
    assert url.port == 5433
    assert url.query['application_name'] == 'gen'


def test_sqlite_memory_engine_kwargs():
    options = DatabaseOptions(drivername='sqlite', database=':memory:')
    kwargs = SQLiteStrategy().get_engine_kwargs(options)
    assert kwargs['poolclass'] is StaticPool
    options = DatabaseOptions(drivername='sqlite', database='shop.db')
    assert 'poolclass' not in SQLiteStrategy().get_engine_kwargs(options)


@pytest.mark.parametrize(('hours', 'expected'), [(8, '+08:00'), (-5, '-05:00'), (0, '+00:00')])
def test_format_utc_offset(hours, expected):
    assert format_utc_offset(hours) == expected


def test_mysql_session_timezone(mocker, mysql_options):
    dbapi_conn = mocker.Mock()
    MySQLStrategy().configure_connection(dbapi_conn, mysql_options)
    dbapi_conn.cursor.return_value.execute.assert_called_once_with("SET time_zone = '+08:00'")
    dbapi_conn.cursor.return_value.close.assert_called_once()


def test_postgres_session_timezone(mocker):
    options = DatabaseOptions(drivername='postgresql', hostname='db', username='u',
                              password='p', database='shop', port=5432, timezone=8)
    dbapi_conn = mocker.MagicMock()
    PostgresStrategy().configure_connection(dbapi_conn, options)
    cursor = dbapi_conn.cursor.return_value.__enter__.return_value
    cursor.execute.assert_called_once_with("SET TIME ZONE 'UTC-8'")


def test_literals():
    assert get_strategy('mysql').quote_literal("it's") == "'it''s'"
    assert get_strategy('postgresql').quote_literal("it's") == "'it''s'"
    assert get_strategy('mysql').boolean_literal(True) == '1'
    assert get_strategy('postgresql').boolean_literal(False) == 'FALSE'
    assert get_strategy('postgresql').binary_literal(b'\x01') == "'\\x01'::bytea"
    assert get_strategy('mysql').quote_identifier('order') == '`order`'
    assert get_strategy('sqlite').quote_identifier('order') == '"order"'


def test_upsert_sql():
    mysql = get_strategy('mysql')
    assert mysql.build_upsert_sql('t', ['id', 'a'], ['1', "'x'"], ['id']) == (
        "insert into t (id, a) values (1, 'x') on duplicate key update a = values(a)")
    assert mysql.build_upsert_sql('t', ['id'], ['1'], ['id']) == (
        'insert into t (id) values (1) on duplicate key update id = values(id)')
    sqlite = get_strategy('sqlite')
    assert sqlite.build_upsert_sql('t', ['id'], ['1'], ['id']) == (
        'insert into t (id) values (1) on conflict (id) do nothing')
    with pytest.raises(ValueError):
        sqlite.build_upsert_sql('t', ['a'], ['1'], [])


def test_postgres_column_definition():
    base = {'data_type': 'USER-DEFINED', 'udt_name': 'file_type',
            'character_maximum_length': None, 'enum_labels': "'Cover','Image'"}
    assert column_definition(base) == "enum('Cover','Image')"
    assert column_definition({**base, 'data_type': 'ARRAY', 'udt_name': '_file_type'}) == (
        "set('Cover','Image')")
    assert column_definition({**base, 'enum_labels': None, 'udt_name': 'varchar',
                              'character_maximum_length': 32}) == 'varchar(32)'
    assert column_definition({**base, 'enum_labels': None, 'udt_name': 'int8'}) == 'int8'


def test_mysql_describe_decodes_bytes(mocker):
    strategy = MySQLStrategy()
    mocker.patch.object(strategy, '_select_raw', return_value=[
        {'Field': b'id', 'Type': b'bigint(20) unsigned', 'Null': 'NO', 'Key': 'PRI'},
        {'Field': 'type', 'Type': "enum('a','b')", 'Null': 'YES', 'Key': ''},
    ])
    columns = strategy.describe_table(mocker.Mock(), 'file', bypass_cache=True)
    assert columns == [
        ColumnSchema('id', 'bigint(20) unsigned', nullable=False, is_primary_key=True),
        ColumnSchema('type', "enum('a','b')", nullable=True, is_primary_key=False),
    ]
    strategy._select_raw.assert_called_once_with(mocker.ANY, 'DESCRIBE `file`')


if __name__ == '__main__':
    __import__('pytest').main([__file__])
