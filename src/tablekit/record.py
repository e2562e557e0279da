"""
Runtime support for generated records and enumerations.

Generated records are dataclasses deriving from `Record`; their
`__columns__` tuple maps each in-memory field to its wire name and
semantic type. Generated enumerations derive from `LabeledEnum`, whose
member values are the labels stored in the database.
"""
import datetime
import decimal
import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Self

import dateutil.parser
from tablekit.mapping.types import SemanticType
from tablekit.naming import to_camel

logger = logging.getLogger(__name__)

__all__ = ['LabeledEnum', 'Record', 'RecordColumn', 'coerce_value', 'to_wire']


class LabeledEnum(enum.Enum):
    """Enumeration whose values are the stored labels.
    """

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: str) -> Self:
        """Member for a stored label."""
        return cls(label)

    @classmethod
    def from_identifier(cls, identifier: str) -> Self:
        return cls[identifier]

    @classmethod
    def values(cls) -> list[Self]:
        """Every member in declared order."""
        return list(cls)

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class RecordColumn:
    field: str
    wire: str
    semantic: SemanticType
    enum_type: type[LabeledEnum] | None = None


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, bytes | bytearray):
        value = value.decode()
    return dateutil.parser.parse(str(value))


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, datetime.timedelta):
        # MySQL TIME columns arrive as timedelta
        return (datetime.datetime.min + value).time()
    if isinstance(value, datetime.datetime):
        return value.time()
    return dateutil.parser.parse(str(value)).time()


def _to_labels(value: Any) -> list[str]:
    if isinstance(value, str):
        return [v for v in value.split(',') if v]
    if isinstance(value, set | frozenset):
        return sorted(str(v) for v in value)
    return [str(v) for v in value]


def coerce_value(column: RecordColumn, value: Any) -> Any:
    """Convert a fetched cell to the record field's Python type.
    """
    if value is None:
        return None
    match column.semantic:
        case SemanticType.ENUMERATION:
            return column.enum_type.from_label(str(value))
        case SemanticType.MULTI_VALUE_SET:
            return [column.enum_type.from_label(v) for v in _to_labels(value)]
        case SemanticType.BOOLEAN:
            if isinstance(value, str):
                return value.strip().lower() in {'1', 'true', 't', 'yes', 'y'}
            return bool(value)
        case SemanticType.DATE:
            if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
                return value
            return _to_datetime(value).date()
        case SemanticType.TIME:
            return _to_time(value)
        case SemanticType.DATETIME | SemanticType.TIMESTAMP:
            return _to_datetime(value)
        case SemanticType.BINARY:
            if isinstance(value, str):
                return value.encode()
            return bytes(value)
        case SemanticType.JSON:
            if isinstance(value, str):
                return value
            return json.dumps(value)
        case SemanticType.TEXT:
            if isinstance(value, bytes | bytearray):
                return value.decode()
            return str(value)
        case SemanticType.FLOAT32 | SemanticType.FLOAT64:
            return float(value)
        case _:
            return int(value)


def to_wire(value: Any) -> Any:
    """JSON-shaped projection of a field value.
    """
    if isinstance(value, LabeledEnum):
        return value.label
    if isinstance(value, list):
        return [to_wire(v) for v in value]
    if isinstance(value, datetime.date | datetime.time):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, bytes | bytearray):
        return value.hex()
    return value


class Record:
    """Base for generated records.

    Subclasses are dataclasses whose fields default to None plus an
    `_associated` slot for caller data that is never read from or written
    to the store.
    """
    __table__: ClassVar[str] = ''
    __columns__: ClassVar[tuple[RecordColumn, ...]] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build a record from a row keyed by wire name, camel-case name or field name.
        """
        kwargs = {}
        for column in cls.__columns__:
            for key in (column.wire, to_camel(column.wire), column.field):
                if key in data:
                    kwargs[column.field] = coerce_value(column, data[key])
                    break
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Project to a dict keyed by wire name."""
        return {c.wire: to_wire(getattr(self, c.field)) for c in self.__columns__}

    def values_by_wire(self) -> dict[str, Any]:
        """Raw field values keyed by wire name."""
        return {c.wire: getattr(self, c.field) for c in self.__columns__}

    def with_associated(self, associated: Any) -> Self:
        self._associated = associated
        return self
