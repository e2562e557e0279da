"""
Tests for field processors.
"""
import pytest
from tablekit.exceptions import ProcessorError
from tablekit.processing import EncryptionProcessor, Encryptor, FieldKey
from tablekit.processing import Processor, ProcessorRegistry, ProcessorSettings


class Upper:

    def before_save(self, value):
        return value.upper()

    def after_fetch(self, value):
        return value.lower()


class Suffix:

    def before_save(self, value):
        return f'{value}!'

    def after_fetch(self, value):
        return value.rstrip('!')


class Broken:

    def before_save(self, value):
        raise RuntimeError('boom')

    def after_fetch(self, value):
        return value


NAME = FieldKey('product', 'name')


def test_protocols(encryptor):
    assert isinstance(encryptor, Encryptor)
    assert isinstance(Upper(), Processor)
    assert isinstance(EncryptionProcessor(encryptor), Processor)


def test_registration_order():
    """Several processors on one field run in registration order"""
    registry = ProcessorRegistry([
        ProcessorSettings(Upper(), [NAME]),
        ProcessorSettings(Suffix(), [NAME, FieldKey('product', 'sku')]),
    ])
    assert registry.before_save('product', 'name', 'abc') == 'ABC!'
    assert registry.before_save('product', 'sku', 'abc') == 'abc!'
    assert registry.before_save('product', 'other', 'abc') == 'abc'
    assert len(registry.processors_for('product', 'name')) == 2
    assert NAME in registry


def test_after_fetch_row():
    registry = ProcessorRegistry([ProcessorSettings(Suffix(), [NAME])])
    row = {'id': 1, 'name': 'abc!'}
    assert registry.after_fetch_row('product', row) == {'id': 1, 'name': 'abc'}
    assert ProcessorRegistry().after_fetch_row('product', row) is row


def test_processor_failure_is_wrapped():
    registry = ProcessorRegistry([ProcessorSettings(Broken(), [NAME])])
    with pytest.raises(ProcessorError) as exc_info:
        registry.before_save('product', 'name', 'abc')
    assert exc_info.value.table == 'product'
    assert exc_info.value.column == 'name'
    assert exc_info.value.stage == 'before_save'
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_encryption_processor(encryptor):
    processor = EncryptionProcessor(encryptor)
    assert processor.before_save('abc') == 'enc:cba'
    assert processor.after_fetch('enc:cba') == 'abc'
    assert processor.before_save(None) is None


def test_after_fetch_row_skips_columns(encryptor):
    """Test skipped columns pass through without a second decrypt"""
    registry = ProcessorRegistry([ProcessorSettings(EncryptionProcessor(encryptor),
                                                    [FieldKey('review', 'body'), FieldKey('review', 'title')])])
    row = {'body': 'superb', 'title': 'enc:kO'}
    assert registry.after_fetch_row('review', row, frozenset({'body'})) == {'body': 'superb', 'title': 'Ok'}
    with pytest.raises(ProcessorError):
        registry.after_fetch_row('review', row)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
