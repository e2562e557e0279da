import pytest
from tablekit.options import DatabaseOptions, GeneratorOptions


def test_init_defaults():
    """Test default initialization"""
    options = DatabaseOptions(
        hostname='testhost',
        username='testuser',
        password='testpass',
        database='testdb',
    )

    assert options.drivername == 'mysql'
    assert options.appname is not None
    assert options.timezone is None

    assert options.use_pool is True
    assert options.pool_max_connections == 5
    assert options.pool_max_idle_time == 300
    assert options.pool_wait_timeout == 20


def test_validation():
    """Test validation rules"""
    with pytest.raises(ValueError):
        DatabaseOptions(
            drivername='invalid',
            hostname='testhost',
            username='testuser',
            password='testpass',
            database='testdb',
        )

    with pytest.raises(ValueError):
        DatabaseOptions(drivername='mysql', hostname='testhost')

    with pytest.raises(ValueError):
        DatabaseOptions(drivername='postgresql', hostname='h', username='u',
                        password='p', database='d')


def test_timezone_range():
    options = DatabaseOptions(drivername='sqlite', database=':memory:', timezone=8)
    assert options.timezone == 8
    with pytest.raises(ValueError):
        DatabaseOptions(drivername='sqlite', database=':memory:', timezone=15)


def test_sqlite_options():
    """Test SQLite options validation"""
    options = DatabaseOptions(
        drivername='sqlite',
        database='test.db'
    )
    assert options.drivername == 'sqlite'
    assert options.database == 'test.db'

    with pytest.raises(ValueError):
        DatabaseOptions(drivername='sqlite')


def test_generator_defaults():
    options = GeneratorOptions()
    assert options.output_dir == 'generated'
    assert options.boolean_tables == set()
    assert options.capability_bindings == {}
    assert options.tables == []
    assert options.runtime_package == 'tablekit'


def test_generator_normalizes_collections():
    options = GeneratorOptions(boolean_tables=['product', 'product'],
                               encrypted_columns={'users': ['email']})
    assert options.boolean_tables == {'product'}
    assert options.is_encrypted('users', 'email')
    assert not options.is_encrypted('users', 'name')
    assert not options.is_encrypted('orders', 'email')


@pytest.mark.parametrize('pattern', ['pro*duct', '*product', 'product**'])
def test_generator_rejects_bad_patterns(pattern):
    with pytest.raises(ValueError):
        GeneratorOptions(capability_bindings={pattern: 'Searchable'})


if __name__ == '__main__':
    __import__('pytest').main([__file__])
