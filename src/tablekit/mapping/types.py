"""
Semantic types and the column-type token table.

Every raw type token a supported store reports maps to exactly one
`TypeFamily`. A family names the semantic kind, whether resolution needs
side information (`conditional`), whether the value is a list, and the
typed column wrapper used by generated table mappings.
"""
import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tablekit.codegen.enums import EnumerationDefinition

__all__ = [
    'SemanticType',
    'TypeFamily',
    'ResolvedType',
    'TYPE_FAMILIES',
    'UNSIGNED_WIDENING',
    'lookup_family',
]


class SemanticType(enum.Enum):
    """Driver-independent category of a column value.
    """
    TEXT = 'Text'
    INTEGER8 = 'Integer8'
    INTEGER16 = 'Integer16'
    INTEGER32 = 'Integer32'
    INTEGER64 = 'Integer64'
    UNSIGNED_INTEGER64 = 'UnsignedInteger64'
    FLOAT32 = 'Float32'
    FLOAT64 = 'Float64'
    BOOLEAN = 'Boolean'
    ENUMERATION = 'Enumeration'
    MULTI_VALUE_SET = 'MultiValueSet'
    DATE = 'Date'
    TIME = 'Time'
    DATETIME = 'DateTime'
    TIMESTAMP = 'Timestamp'
    BINARY = 'Binary'
    JSON = 'Json'

    @property
    def annotation(self) -> str:
        """Python annotation of the (unwrapped) value in generated records."""
        return _ANNOTATIONS[self]

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC

    @property
    def is_temporal(self) -> bool:
        return self in {SemanticType.DATE, SemanticType.TIME,
                        SemanticType.DATETIME, SemanticType.TIMESTAMP}


_ANNOTATIONS = {
    SemanticType.TEXT: 'str',
    SemanticType.INTEGER8: 'int',
    SemanticType.INTEGER16: 'int',
    SemanticType.INTEGER32: 'int',
    SemanticType.INTEGER64: 'int',
    SemanticType.UNSIGNED_INTEGER64: 'int',
    SemanticType.FLOAT32: 'float',
    SemanticType.FLOAT64: 'float',
    SemanticType.BOOLEAN: 'bool',
    SemanticType.DATE: 'datetime.date',
    SemanticType.TIME: 'datetime.time',
    SemanticType.DATETIME: 'datetime.datetime',
    SemanticType.TIMESTAMP: 'datetime.datetime',
    SemanticType.BINARY: 'bytes',
    SemanticType.JSON: 'str',
}

_NUMERIC = frozenset({
    SemanticType.INTEGER8,
    SemanticType.INTEGER16,
    SemanticType.INTEGER32,
    SemanticType.INTEGER64,
    SemanticType.UNSIGNED_INTEGER64,
    SemanticType.FLOAT32,
    SemanticType.FLOAT64,
    })


@dataclass(frozen=True)
class TypeFamily:
    semantic: SemanticType
    column_class: str
    conditional: bool = False
    container: str | None = None


_TEXT = TypeFamily(SemanticType.TEXT, 'Varchar')
_INT32 = TypeFamily(SemanticType.INTEGER32, 'Int')
_INT64 = TypeFamily(SemanticType.INTEGER64, 'Bigint')
_FLOAT64 = TypeFamily(SemanticType.FLOAT64, 'Double')
_BLOB = TypeFamily(SemanticType.BINARY, 'Blob', container='bytes')
_JSON = TypeFamily(SemanticType.JSON, 'Json')
_TIMESTAMP = TypeFamily(SemanticType.TIMESTAMP, 'Timestamp')

TYPE_FAMILIES: dict[str, TypeFamily] = {
    # MySQL
    'char': TypeFamily(SemanticType.TEXT, 'Char'),
    'varchar': _TEXT,
    'tinytext': TypeFamily(SemanticType.TEXT, 'Text'),
    'text': TypeFamily(SemanticType.TEXT, 'Text'),
    'mediumtext': TypeFamily(SemanticType.TEXT, 'Text'),
    'longtext': TypeFamily(SemanticType.TEXT, 'Text'),
    'enum': TypeFamily(SemanticType.ENUMERATION, 'Enum', conditional=True),
    'set': TypeFamily(SemanticType.MULTI_VALUE_SET, 'Set', conditional=True, container='list'),
    'tinyint': TypeFamily(SemanticType.INTEGER8, 'Tinyint', conditional=True),
    'smallint': TypeFamily(SemanticType.INTEGER16, 'Smallint'),
    'mediumint': _INT32,
    'int': _INT32,
    'bigint': _INT64,
    'numeric': TypeFamily(SemanticType.FLOAT64, 'Decimal'),
    'decimal': TypeFamily(SemanticType.FLOAT64, 'Decimal'),
    'float': TypeFamily(SemanticType.FLOAT32, 'Float'),
    'double': _FLOAT64,
    'date': TypeFamily(SemanticType.DATE, 'Date'),
    'time': TypeFamily(SemanticType.TIME, 'Time'),
    'datetime': TypeFamily(SemanticType.DATETIME, 'Datetime'),
    'timestamp': _TIMESTAMP,
    'year': TypeFamily(SemanticType.INTEGER32, 'Year'),
    'binary': _BLOB,
    'varbinary': _BLOB,
    'tinyblob': _BLOB,
    'blob': _BLOB,
    'mediumblob': _BLOB,
    'longblob': _BLOB,
    'json': _JSON,
    # PostgreSQL udt names
    'bpchar': TypeFamily(SemanticType.TEXT, 'Char'),
    'character': TypeFamily(SemanticType.TEXT, 'Char'),
    'uuid': _TEXT,
    'int2': TypeFamily(SemanticType.INTEGER16, 'Smallint'),
    'int4': _INT32,
    'int8': _INT64,
    'float4': TypeFamily(SemanticType.FLOAT32, 'Float'),
    'float8': _FLOAT64,
    'bool': TypeFamily(SemanticType.BOOLEAN, 'Boolean'),
    'boolean': TypeFamily(SemanticType.BOOLEAN, 'Boolean'),
    'timestamptz': _TIMESTAMP,
    'timetz': TypeFamily(SemanticType.TIME, 'Time'),
    'bytea': _BLOB,
    'jsonb': _JSON,
    # SQLite declared-type spellings
    'integer': _INT64,
    'real': _FLOAT64,
    'clob': TypeFamily(SemanticType.TEXT, 'Text'),
}

# `unsigned` widens integers one step so the full range fits
UNSIGNED_WIDENING: dict[SemanticType, TypeFamily] = {
    SemanticType.INTEGER8: TypeFamily(SemanticType.INTEGER16, 'Smallint'),
    SemanticType.INTEGER16: _INT32,
    SemanticType.INTEGER32: _INT64,
    SemanticType.INTEGER64: TypeFamily(SemanticType.UNSIGNED_INTEGER64, 'BigintUnsigned'),
}


def lookup_family(token: str) -> TypeFamily | None:
    """Find the family for a lower-cased type token, or None.
    """
    return TYPE_FAMILIES.get(token)


@dataclass(frozen=True)
class ResolvedType:
    """Outcome of resolving one column.

    `annotation` is the nullable-wrapped Python annotation emitted in the
    generated record, e.g. `str | None` or `list[ProductTag] | None`.
    """
    semantic: SemanticType
    column_class: str
    annotation: str
    conditional: bool = False
    container: str | None = None
    enumeration: 'EnumerationDefinition | None' = None

    @property
    def needs_datetime_import(self) -> bool:
        return self.semantic.is_temporal
