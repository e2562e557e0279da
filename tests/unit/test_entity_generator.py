"""
Tests for record, enumeration and table-mapping generation.
"""
import importlib
import sys

import pytest
from tablekit.codegen import DirectorySink, EntityGenerator, MemorySink
from tablekit.exceptions import UnsupportedColumnTypeError
from tablekit.mapping.types import SemanticType
from tablekit.options import GeneratorOptions
from tablekit.types import ColumnSchema

from tests.fixtures.schema import FakeIntrospector


@pytest.fixture
def sink():
    return MemorySink()


def test_file_entity(fake_introspector, sink):
    """The `file` table yields a record with a renamed `type` field"""
    report = EntityGenerator(fake_introspector, GeneratorOptions(tables=['file']), sink).generate()

    entity = report.entities[0]
    assert entity.table_name == 'file'
    assert entity.record_name == 'File'
    assert [f.name for f in entity.fields] == ['id', 'type_', 'created_on']
    assert [f.wire_name for f in entity.fields] == ['id', 'type', 'created_on']
    assert [f.annotation for f in entity.fields] == [
        'str | None', 'FileType | None', 'datetime.datetime | None']
    assert [f.semantic for f in entity.fields] == [
        SemanticType.TEXT, SemanticType.ENUMERATION, SemanticType.TIMESTAMP]
    assert [f.reserved_collision for f in entity.fields] == [False, True, False]
    assert entity.primary_key == ['id']
    assert entity.enumerations_used == ['file_type']

    assert [e.name for e in report.enumerations] == ['FileType']
    assert report.enumerations[0].labels == ['Cover', 'Image']
    assert report.skipped_tables == []


def test_file_artifacts(fake_introspector, sink):
    EntityGenerator(fake_introspector, GeneratorOptions(tables=['file']), sink).generate()

    record = sink['entity/file.py']
    assert 'class File(Record):' in record
    assert "__table__: ClassVar[str] = 'file'" in record
    assert "RecordColumn('type_', 'type', SemanticType.ENUMERATION, FileType)," in record
    assert '    type_: FileType | None = None' in record
    assert '    created_on: datetime.datetime | None = None' in record
    assert '    _associated: Any = None' in record
    assert 'import datetime' in record
    assert 'from .enums import FileType' in record

    enum_module = sink['entity/enums/file_type.py']
    assert 'class FileType(LabeledEnum):' in enum_module
    assert enum_module.index("Cover = 'Cover'") < enum_module.index("Image = 'Image'")

    mapping = sink['mapping/file_table.py']
    assert 'class FileTable(Table):' in mapping
    assert "ColumnSpec('id', 'id', Varchar, primary_key=True)," in mapping
    assert "ColumnSpec('type_', 'type', Enum, FileType)," in mapping
    assert '    type_: Enum[FileType]' in mapping
    assert 'from tablekit.query.columns import Enum, Timestamp, Varchar' in mapping

    assert 'from .file import File' in sink['entity/__init__.py']
    assert 'from .file_type import FileType' in sink['entity/enums/__init__.py']
    assert 'from .file_table import FileTable' in sink['mapping/__init__.py']
    assert '__init__.py' in sink


def test_generated_sources_compile(fake_introspector, sink):
    options = GeneratorOptions(capability_bindings={'product*': 'Searchable'})
    report = EntityGenerator(fake_introspector, options, sink).generate()
    assert sorted(report.artifacts) == sorted(sink.artifacts)
    for path, text in sink.artifacts.items():
        compile(text, path, 'exec')


def test_boolean_tables_and_reserved_names(fake_introspector, sink):
    options = GeneratorOptions(tables=['product'], boolean_tables={'product'})
    entity = EntityGenerator(fake_introspector, options, sink).generate().entities[0]
    fields = {f.wire_name: f for f in entity.fields}
    assert fields['published'].semantic == SemanticType.BOOLEAN
    assert fields['id'].semantic == SemanticType.UNSIGNED_INTEGER64
    assert fields['class'].name == 'class_'
    assert fields['tag'].annotation == 'list[ProductTag] | None'
    assert fields['image'].annotation == 'bytes | None'


def test_identifier_hostile_labels_use_functional_enum(fake_introspector, sink):
    EntityGenerator(fake_introspector, GeneratorOptions(tables=['product']), sink).generate()
    module = sink['entity/enums/product_status.py']
    assert "ProductStatus = LabeledEnum(" in module
    assert "('_2nd Run', '2nd Run')" in module


def test_capabilities_declared_once(fake_introspector, sink):
    options = GeneratorOptions(capability_bindings={
        'product*': 'Searchable',
        'file_type': 'Searchable',
        'product_status': 'Displayable',
    })
    report = EntityGenerator(fake_introspector, options, sink).generate()
    assert report.capabilities == ['Searchable', 'Displayable']
    capabilities = sink['entity/enums/capabilities.py']
    assert capabilities.count('class Searchable:') == 1
    assert capabilities.count('class Displayable:') == 1
    assert 'class FileType(Searchable, LabeledEnum):' in sink['entity/enums/file_type.py']
    assert 'type=Displayable' in sink['entity/enums/product_status.py']


def test_encrypted_columns(fake_introspector, sink):
    options = GeneratorOptions(tables=['product'], encrypted_columns={'product': ['name']})
    EntityGenerator(fake_introspector, options, sink).generate()
    assert "ColumnSpec('name', 'name', Varchar, encrypted=True)," in sink['mapping/product_table.py']


def test_unreadable_table_is_skipped(sink, file_columns):
    introspector = FakeIntrospector({'file': file_columns}, broken={'secret'})
    report = EntityGenerator(introspector, GeneratorOptions(), sink).generate()
    assert [e.table_name for e in report.entities] == ['file']
    assert [s.table for s in report.skipped_tables] == ['secret']
    assert 'access denied' in report.skipped_tables[0].reason
    assert 'entity/file.py' in sink
    assert 'entity/secret.py' not in sink


def test_unsupported_type_aborts_run(sink, file_columns):
    """Nothing is written when any column type is unsupported"""
    introspector = FakeIntrospector({
        'file': file_columns,
        'place': [ColumnSchema('shape', 'geometry')],
    })
    with pytest.raises(UnsupportedColumnTypeError):
        EntityGenerator(introspector, GeneratorOptions(), sink).generate()
    assert sink.artifacts == {}


def test_runtime_package_option(fake_introspector, sink):
    options = GeneratorOptions(tables=['file'], runtime_package='vendor.tablekit')
    EntityGenerator(fake_introspector, options, sink).generate()
    assert 'from vendor.tablekit.record import Record, RecordColumn' in sink['entity/file.py']


def test_generator_shares_enumerations(fake_introspector, sink):
    generator = EntityGenerator(fake_introspector, GeneratorOptions(tables=['file']), sink)
    assert generator.resolver.enumerations is generator.enumerations
    assert [e.name for e in generator.generate().enumerations] == ['FileType']


def test_generated_package_imports(file_columns, tmp_path, monkeypatch):
    """Test written enum, set and capability modules import and behave"""
    columns = [*file_columns, ColumnSchema('flags', "set('hidden','pinned')")]
    options = GeneratorOptions(capability_bindings={'file*': 'Searchable'})
    EntityGenerator(FakeIntrospector({'file': columns}), options,
                    DirectorySink(tmp_path / 'filedb')).generate()
    monkeypatch.syspath_prepend(str(tmp_path))
    try:
        filedb = importlib.import_module('filedb')
        enums = importlib.import_module('filedb.entity.enums')
        assert [m.label for m in enums.FileType.values()] == ['Cover', 'Image']
        assert [m.label for m in enums.FileFlags.values()] == ['hidden', 'pinned']
        assert issubclass(enums.FileType, enums.Searchable)
        assert issubclass(enums.FileFlags, enums.Searchable)
        assert enums.FileType.from_label('Image') is enums.FileType.Image

        record = filedb.File(id='f1', type_=enums.FileType.Cover, flags=[enums.FileFlags.pinned])
        assert filedb.FileTable.from_record(record).type_.value is enums.FileType.Cover
    finally:
        for name in [m for m in sys.modules if m == 'filedb' or m.startswith('filedb.')]:
            del sys.modules[name]


if __name__ == '__main__':
    __import__('pytest').main([__file__])
