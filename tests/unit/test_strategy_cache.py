"""
Unit tests for introspection caching.
"""
import pytest
from tablekit.cache import Cache, _create_cache_key, cacheable_strategy
from tablekit.strategy.sqlite import SQLiteStrategy


@pytest.fixture
def counting_strategy(mocker):
    strategy = SQLiteStrategy()
    mocker.patch.object(strategy, '_select_raw', return_value=[
        {'name': 'id', 'type': 'INTEGER', 'notnull': 1, 'pk': 1},
    ])
    return strategy


def test_cache_key_includes_table_and_url(mocker):
    cn = mocker.Mock()
    cn.engine.url = 'sqlite:///a.db'
    key = _create_cache_key(cn, 'Product', (), {})
    assert key.startswith('product:')
    assert key.endswith('sqlite:///a.db')


def test_describe_table_is_cached(mocker, counting_strategy):
    cn = mocker.Mock()
    first = counting_strategy.describe_table(cn, 'product')
    second = counting_strategy.describe_table(cn, 'product')
    assert first == second
    assert counting_strategy._select_raw.call_count == 1


def test_bypass_cache(mocker, counting_strategy):
    cn = mocker.Mock()
    counting_strategy.describe_table(cn, 'product')
    counting_strategy.describe_table(cn, 'product', bypass_cache=True)
    assert counting_strategy._select_raw.call_count == 2


def test_clear_for_table(mocker, counting_strategy):
    cn = mocker.Mock()
    counting_strategy.describe_table(cn, 'product')
    Cache.get_instance().clear_for_table('product')
    counting_strategy.describe_table(cn, 'product')
    assert counting_strategy._select_raw.call_count == 2


def test_decorator_on_plain_class(mocker):
    calls = []

    class Source:

        @cacheable_strategy('test_source', ttl=60, maxsize=10)
        def load(self, cn, table):
            calls.append(table)
            return [table]

    source = Source()
    cn = mocker.Mock()
    assert source.load(cn, 'a') == ['a']
    assert source.load(cn, 'a') == ['a']
    assert source.load(cn, 'b') == ['b']
    assert calls == ['a', 'b']


if __name__ == '__main__':
    __import__('pytest').main([__file__])
