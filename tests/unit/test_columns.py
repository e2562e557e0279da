"""
Tests for the typed column family.
"""
import datetime

import pytest
from tablekit.exceptions import ConfigurationError
from tablekit.query import select
from tablekit.query.columns import Bigint, BigintUnsigned, Blob, Boolean, Date
from tablekit.query.columns import Datetime, DateUnit, Decimal, Enum, Int
from tablekit.query.columns import LiteralValue, NameReference, Set
from tablekit.query.columns import SubQueryHolding, TypedColumn, Varchar
from tablekit.query.expression import SqlRenderer
from tablekit.record import LabeledEnum


class Color(LabeledEnum):
    Red = 'red'
    Blue = 'blue'


def test_holding_states():
    assert isinstance(Varchar.with_name('name').holding, NameReference)
    assert isinstance(Varchar.with_literal('x').holding, LiteralValue)
    assert isinstance(Int.with_name_query('cnt', select('id').from_('t')).holding, SubQueryHolding)
    assert Varchar.with_literal('x').value == 'x'
    assert Varchar.with_name('name').value is None


def test_name_reference_requires_name():
    with pytest.raises(ValueError):
        TypedColumn()


def test_equal_literal():
    assert Varchar.with_name('name').equal('abc').render() == "name = 'abc'"
    assert Varchar.with_name('name').not_equal('abc').render() == "name != 'abc'"


def test_encrypted_equal(encryptor):
    """Literal comparands of encrypted text columns are encrypted"""
    column = Varchar.with_name('email').encrypted()
    assert column.equal('abc').render(encryptor=encryptor) == "email = 'enc:cba'"
    assert column.not_equal('abc').render(encryptor=encryptor) == "email != 'enc:cba'"


def test_encrypted_equal_name_comparand(encryptor):
    column = Varchar.with_name('email').encrypted()
    other = Varchar.with_qualified_name('backup', 'email')
    assert column.equal(other).render(encryptor=encryptor) == 'email = backup.email'


def test_encrypted_equal_needs_encryptor():
    with pytest.raises(ConfigurationError):
        Varchar.with_name('email').encrypted().equal('abc').render()


def test_encryption_only_applies_to_equality(encryptor):
    column = Varchar.with_name('email').encrypted()
    assert column.like('a%').render(encryptor=encryptor) == "email LIKE 'a%'"


def test_encrypted_membership(encryptor):
    """Test list members of encrypted text columns are encrypted"""
    column = Varchar.with_name('email').encrypted()
    assert column.in_(['ab', 'cd']).render(encryptor=encryptor) == "email IN ('enc:ba', 'enc:dc')"
    assert column.not_in(['ab']).render(encryptor=encryptor) == "email NOT IN ('enc:ba')"


def test_quoting():
    assert Varchar.with_name('name').equal("it's").render() == "name = 'it''s'"
    assert Varchar.with_name('name').equal('a\\b').render() == "name = 'a\\\\b'"
    assert Varchar.with_name('name').equal('a\\b').render('sqlite') == "name = 'a\\b'"


def test_comparisons():
    column = Int.with_name('qty')
    assert column.less_than(3).render() == 'qty < 3'
    assert column.less_equal(3).render() == 'qty <= 3'
    assert column.greater_than(3).render() == 'qty > 3'
    assert column.greater_equal('3').render() == 'qty >= 3'
    assert column.eq(3).render() == 'qty = 3'
    assert column.ne(3).render() == 'qty != 3'


def test_numeric_coercion():
    with pytest.raises(ValueError):
        Int.with_name('qty').equal('three')
    with pytest.raises(ValueError):
        BigintUnsigned.with_name_value('id', -1)
    assert Decimal.with_name('price').equal(9.5).render() == 'price = 9.5'


def test_null_checks():
    assert Datetime.with_name('deleted_on').is_null().render() == 'deleted_on IS NULL'
    assert Datetime.with_name('deleted_on').is_not_null().render() == 'deleted_on IS NOT NULL'


def test_membership():
    column = Int.with_name('id')
    assert column.in_([1, 2, 3]).render() == 'id IN (1, 2, 3)'
    assert column.not_in([1, 2]).render() == 'id NOT IN (1, 2)'
    assert column.in_([]).render() == '1 = 0'
    assert column.not_in([]).render() == '1 = 1'


def test_membership_subquery():
    sub = select('product_id').from_('review')
    assert Int.with_name('id').in_(sub).render() == 'id IN (select product_id from review)'
    assert Int.with_name('id').equal(sub).render() == 'id = (select product_id from review)'


def test_between():
    cond = Date.with_name('created_on').between(datetime.date(2024, 1, 1), '2024-01-31')
    assert cond.render() == "created_on BETWEEN '2024-01-01' AND '2024-01-31'"


def test_datetime_literal():
    cond = Datetime.with_name('created_on').less_than(datetime.datetime(2024, 1, 5, 10, 0))
    assert cond.render() == "created_on < '2024-01-05 10:00:00'"


def test_text_emptiness():
    assert Varchar.with_name('name').is_empty().render() == "name = ''"
    assert Varchar.with_name('name').is_not_empty().render() == "name != ''"


def test_boolean():
    assert Boolean.with_name('active').is_true().render() == 'active = 1'
    assert Boolean.with_name('active').equal('false').render() == 'active = 0'
    assert Boolean.with_name('active').is_false().render('postgresql') == 'active = FALSE'


def test_blob():
    assert Blob.with_name('image').equal(b'\x01\xff').render() == "image = X'01ff'"


def test_enum():
    column = Enum.with_name('color', enum_type=Color)
    assert column.equal(Color.Red).render() == "color = 'red'"
    assert column.equal('blue').render() == "color = 'blue'"
    with pytest.raises(ValueError):
        column.equal('green')


def test_set():
    column = Set.with_name('tags', enum_type=Color)
    assert column.find_in_set(Color.Red).render() == "FIND_IN_SET('red', tags) > 0"
    assert column.find_in_set('blue').render('sqlite') == (
        "instr(',' || tags || ',', ',' || 'blue' || ',') > 0")
    assert column.equal([Color.Red, Color.Blue]).render() == "tags = 'red,blue'"


def test_date_add():
    shifted = Date.with_name('created_on').add(-7)
    assert shifted.less_than('2024-01-31').render() == "DATE_ADD(created_on, INTERVAL -7 DAY) < '2024-01-31'"
    assert shifted.less_than('2024-01-31').render('sqlite') == "date(created_on, '-7 days') < '2024-01-31'"
    assert Date.with_name('d').add(1, DateUnit.MONTH).is_null().render() == 'DATE_ADD(d, INTERVAL 1 MONTH) IS NULL'
    assert Date.with_name('d').add(2, 'year').is_null().render('postgresql') == "(d + interval '2 year') IS NULL"


def test_qualified_names():
    cond = Varchar.with_qualified_name('product', 'name').equal('x')
    assert cond.render() == "product.name = 'x'"
    assert Varchar.with_name('name').qualified('p').qualified_name == 'p.name'


def test_mutators_return_new_instances():
    column = Varchar.with_name('name')
    aliased = column.as_('n')
    assert column.alias is None
    assert aliased.alias == 'n'
    assert not column.is_encrypted
    assert column.encrypted().is_encrypted
    assert column.set('x').value == 'x'
    assert column.value is None


def test_conversions():
    """Conversions keep table, name, alias, holding and encryption"""
    enum_column = Enum.with_name_value('color', Color.Red, table='p', enum_type=Color).encrypted().as_('c')
    text = enum_column.to_varchar()
    assert isinstance(text, Varchar)
    assert (text.name, text.table, text.alias, text.is_encrypted) == ('color', 'p', 'c', True)
    assert text.value == 'red'

    number = Int.with_name_value('id', 5).to_varchar()
    assert number.value == '5'

    widened = Int.with_name('id').convert(Bigint)
    assert isinstance(widened, Bigint)
    assert isinstance(widened.holding, NameReference)


def test_select_terms(encryptor):
    renderer = SqlRenderer('mysql', encryptor)
    assert Varchar.with_name('name').select_sql(renderer) == 'name'
    assert Varchar.with_name('name').as_('n').select_sql(renderer) == 'name as n'
    assert Varchar.with_qualified_name('p', 'email').encrypted().select_sql(renderer) == 'decrypt(p.email) as email'
    sub = Int.with_name_query('reviews', select('count(*)').from_('review'))
    assert sub.select_sql(renderer) == '(select count(*) from review) as reviews'
    assert Varchar.with_literal('x').as_('kind').select_sql(renderer) == "'x' as kind"


def test_encrypted_select_needs_encryptor():
    with pytest.raises(ConfigurationError):
        Varchar.with_name('email').encrypted().select_sql(SqlRenderer('mysql'))


def test_order_terms():
    renderer = SqlRenderer('mysql')
    assert Int.with_name('id').desc().render(renderer) == 'id desc'
    assert Int.with_name('id').asc().render(renderer) == 'id asc'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
