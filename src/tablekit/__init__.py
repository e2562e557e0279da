"""
Schema-driven data access for MySQL, PostgreSQL and SQLite.

Two halves share one type mapping:
- Generation: `generate(db_options, generator_options)` reads a live
  schema and writes typed records, enumerations and table mappings
- Query building: typed columns produce conditions, and `select`,
  `insert_into`, `update`, `upsert`, `delete_from` build statements that
  run through a `QueryContext`
"""
__version__ = '0.1.0'

from typing import Any

from tablekit.codegen import EntityGenerator, GenerationReport
from tablekit.connection import Driver, connect
from tablekit.context import QueryContext
from tablekit.exceptions import BuildErrorKind, ConfigurationError
from tablekit.exceptions import DbConnectionError, GenerationError
from tablekit.exceptions import IntegrityError, IntrospectionError
from tablekit.exceptions import ProcessorError, ProgrammingError
from tablekit.exceptions import QueryBuildError, TablekitError
from tablekit.exceptions import UnsupportedColumnTypeError
from tablekit.options import DatabaseOptions, GeneratorOptions
from tablekit.paging import PagingData
from tablekit.processing import EncryptionProcessor, Encryptor, FieldKey
from tablekit.processing import Processor, ProcessorSettings
from tablekit.query import Condition, QueryBuilder, Table, delete_from
from tablekit.query import insert_into, insert_or_update, select, update
from tablekit.query import upsert
from tablekit.record import LabeledEnum, Record
from tablekit.schema import SchemaIntrospector


def generate(options: DatabaseOptions | dict[str, Any] | str,
             generator_options: GeneratorOptions | dict[str, Any] | None = None) -> GenerationReport:
    """Connect, introspect every table and write the generated package.

    Raises
        UnsupportedColumnTypeError: a column type is not modelled; nothing is written
    """
    if isinstance(generator_options, dict):
        generator_options = GeneratorOptions(**generator_options)
    driver = connect(options)
    try:
        return EntityGenerator(SchemaIntrospector(driver), generator_options).generate()
    finally:
        driver.dispose()


__all__ = [
    'connect',
    'generate',
    'Driver',
    'QueryContext',
    'DatabaseOptions',
    'GeneratorOptions',
    'EntityGenerator',
    'GenerationReport',
    'SchemaIntrospector',
    'Condition',
    'QueryBuilder',
    'Table',
    'select',
    'insert_into',
    'update',
    'upsert',
    'insert_or_update',
    'delete_from',
    'PagingData',
    'Record',
    'LabeledEnum',
    'Encryptor',
    'Processor',
    'ProcessorSettings',
    'FieldKey',
    'EncryptionProcessor',
    'TablekitError',
    'GenerationError',
    'UnsupportedColumnTypeError',
    'IntrospectionError',
    'QueryBuildError',
    'BuildErrorKind',
    'ConfigurationError',
    'ProcessorError',
    'DbConnectionError',
    'IntegrityError',
    'ProgrammingError',
]
