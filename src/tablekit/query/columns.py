"""
Typed column wrappers.

A column holds one of:

- `NameReference`: it names a column (`product.name`)
- `LiteralValue`: it carries a value (a comparand, or a value to write)
- `SubQueryHolding`: it wraps a nested select
- `Computed`: it is a derived expression such as date arithmetic

Every operation returns a new object; columns are never mutated.
"""
import datetime
import decimal
import enum
import json
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Self, TypeVar

from tablekit.mapping.types import SemanticType
from tablekit.query.condition import Condition
from tablekit.query.expression import Between, BinaryOp, ColumnRef, DateAdd
from tablekit.query.expression import FindInSet, InList, Literal, LiteralKind
from tablekit.query.expression import Node, PostfixOp, SqlRenderer, SubQuery
from tablekit.query.expression import literal_text

if TYPE_CHECKING:
    from tablekit.query.builder import QueryBuilder

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=enum.Enum)

__all__ = [
    'NameReference',
    'LiteralValue',
    'SubQueryHolding',
    'Computed',
    'DateUnit',
    'OrderTerm',
    'TypedColumn',
    'TextColumn',
    'Varchar',
    'Char',
    'Text',
    'Json',
    'IntegerColumn',
    'Tinyint',
    'Smallint',
    'Int',
    'Bigint',
    'BigintUnsigned',
    'Year',
    'FloatColumn',
    'Float',
    'Double',
    'Decimal',
    'Boolean',
    'Enum',
    'Set',
    'TemporalColumn',
    'Date',
    'Time',
    'Datetime',
    'Timestamp',
    'Blob',
    'COLUMN_TYPES',
]


@dataclass(frozen=True)
class NameReference:
    pass


@dataclass(frozen=True)
class LiteralValue:
    value: Any


@dataclass(frozen=True)
class SubQueryHolding:
    query: 'QueryBuilder'


@dataclass(frozen=True)
class Computed:
    node: Node


Holding = NameReference | LiteralValue | SubQueryHolding | Computed

NAME_REFERENCE = NameReference()


class DateUnit(enum.Enum):
    YEAR = 'YEAR'
    MONTH = 'MONTH'
    DAY = 'DAY'


@dataclass(frozen=True)
class OrderTerm:
    column: 'TypedColumn'
    descending: bool = False

    def render(self, renderer: SqlRenderer) -> str:
        direction = 'desc' if self.descending else 'asc'
        return f'{renderer.render(self.column.node())} {direction}'


def _is_builder(value: Any) -> bool:
    return hasattr(value, 'build') and hasattr(value, 'operation')


@dataclass(frozen=True)
class TypedColumn:
    """Base for every column wrapper.

    Args:
        name: Column name; required unless the column holds a bare literal
        table: Optional table qualifier
        alias: Optional output alias in select lists
        holding: What the column currently represents
        is_encrypted: Literal comparands of text columns are encrypted
    """
    name: str | None = None
    table: str | None = None
    alias: str | None = None
    holding: Holding = NAME_REFERENCE
    is_encrypted: bool = False

    semantic: ClassVar[SemanticType] = SemanticType.TEXT
    literal_kind: ClassVar[LiteralKind] = LiteralKind.TEXT
    encrypts_comparands: ClassVar[bool] = False

    def __post_init__(self):
        if isinstance(self.holding, NameReference) and not self.name:
            raise ValueError(f'{type(self).__name__} holding a name reference needs a name')

    @classmethod
    def coerce(cls, value: Any) -> Any:
        """Convert a Python value to this kind's literal representation."""
        return value

    def _coerce(self, value: Any) -> Any:
        return None if value is None else self.coerce(value)

    # constructors

    @classmethod
    def with_name(cls, name: str, **kw: Any) -> Self:
        return cls(name=name, **kw)

    @classmethod
    def with_qualified_name(cls, table: str, name: str, **kw: Any) -> Self:
        return cls(name=name, table=table, **kw)

    @classmethod
    def with_literal(cls, value: Any, **kw: Any) -> Self:
        column = cls(holding=LiteralValue(None), **kw)
        return replace(column, holding=LiteralValue(column._coerce(value)))

    @classmethod
    def with_name_value(cls, name: str, value: Any, table: str | None = None,
                        **kw: Any) -> Self:
        """Column that names its target and carries the value to write."""
        column = cls(name=name, table=table, holding=LiteralValue(None), **kw)
        return replace(column, holding=LiteralValue(column._coerce(value)))

    @classmethod
    def with_name_query(cls, name: str, query: 'QueryBuilder', **kw: Any) -> Self:
        """Select-list column computed by a nested select, output as `name`."""
        return cls(name=name, holding=SubQueryHolding(query), **kw)

    # builder-style mutators

    def as_(self, alias: str) -> Self:
        return replace(self, alias=alias)

    def qualified(self, table: str | None) -> Self:
        return replace(self, table=table)

    def encrypted(self, is_encrypted: bool = True) -> Self:
        return replace(self, is_encrypted=is_encrypted)

    def set(self, value: Any) -> Self:
        """Same column carrying `value` to write."""
        return replace(self, holding=LiteralValue(self._coerce(value)))

    def convert(self, target: type['TypedColumn'], **kw: Any) -> 'TypedColumn':
        """Reinterpret as another column kind, keeping name, qualifier, alias,
        holding and encryption flag.
        """
        holding = self.holding
        if isinstance(holding, LiteralValue) and holding.value is not None:
            holding = LiteralValue(target.coerce(holding.value))
        return target(name=self.name, table=self.table, alias=self.alias,
                      holding=holding, is_encrypted=self.is_encrypted, **kw)

    def to_varchar(self) -> 'Varchar':
        return self.convert(Varchar)

    # state

    @property
    def qualified_name(self) -> str:
        return f'{self.table}.{self.name}' if self.table else self.name

    @property
    def output_name(self) -> str | None:
        return self.alias or self.name

    @property
    def value(self) -> Any:
        if isinstance(self.holding, LiteralValue):
            return self.holding.value
        return None

    @property
    def holds_value(self) -> bool:
        return isinstance(self.holding, LiteralValue)

    @property
    def decrypts_in_select(self) -> bool:
        """Rendered through `decrypt_field` in a select list."""
        return self.is_encrypted and isinstance(self.holding, NameReference)

    def node(self, encrypt: bool = False) -> Node:
        """Expression node for this column in its current holding state."""
        match self.holding:
            case LiteralValue(value=value):
                return Literal(value, self.literal_kind, encrypt=encrypt)
            case SubQueryHolding(query=query):
                return SubQuery(query)
            case Computed(node=node):
                return node
        return ColumnRef(self.name, self.table)

    def value_node(self, value: Any) -> Literal:
        """Literal node for a value about to be written.

        Writes are never encrypted here; field processors own that step.
        A processor that turns a non-text value into text yields a text literal.
        """
        if isinstance(value, str) and not isinstance(self.value, str):
            return Literal(value, LiteralKind.TEXT)
        return Literal(value, self.literal_kind)

    def _operand(self, other: Any, encrypt: bool = False) -> Node:
        if isinstance(other, TypedColumn):
            return other.node(encrypt=encrypt and other.holds_value)
        if _is_builder(other):
            return SubQuery(other)
        return Literal(self._coerce(other), self.literal_kind, encrypt=encrypt)

    def _compare(self, op: str, other: Any, encrypt: bool = False) -> Condition:
        return Condition(BinaryOp(self.node(), op, self._operand(other, encrypt)))

    def _encrypts(self) -> bool:
        return self.is_encrypted and self.encrypts_comparands

    # predicates

    def equal(self, other: Any) -> Condition:
        """`self = other`; literal comparands of encrypted text columns are encrypted."""
        return self._compare('=', other, self._encrypts())

    def not_equal(self, other: Any) -> Condition:
        return self._compare('!=', other, self._encrypts())

    def less_than(self, other: Any) -> Condition:
        return self._compare('<', other)

    def less_equal(self, other: Any) -> Condition:
        return self._compare('<=', other)

    def greater_than(self, other: Any) -> Condition:
        return self._compare('>', other)

    def greater_equal(self, other: Any) -> Condition:
        return self._compare('>=', other)

    eq = equal
    ne = not_equal
    lt = less_than
    le = less_equal
    gt = greater_than
    ge = greater_equal

    def like(self, pattern: str) -> Condition:
        return Condition(BinaryOp(self.node(), 'LIKE', Literal(str(pattern), LiteralKind.TEXT)))

    def is_null(self) -> Condition:
        return Condition(PostfixOp(self.node(), 'IS NULL'))

    def is_not_null(self) -> Condition:
        return Condition(PostfixOp(self.node(), 'IS NOT NULL'))

    def _membership(self, values: Any, negated: bool) -> Condition:
        if _is_builder(values):
            return Condition(InList(self.node(), SubQuery(values), negated))
        items = tuple(self._operand(v, self._encrypts()) for v in values)
        if not items:
            return Condition.text('1 = 1' if negated else '1 = 0')
        return Condition(InList(self.node(), items, negated))

    def in_(self, values: Any) -> Condition:
        """Membership in a list of values or a nested select.

        An empty list matches nothing.
        """
        return self._membership(values, negated=False)

    def not_in(self, values: Any) -> Condition:
        return self._membership(values, negated=True)

    def between(self, low: Any, high: Any) -> Condition:
        return Condition(Between(self.node(), self._operand(low), self._operand(high)))

    def desc(self) -> OrderTerm:
        return OrderTerm(self, descending=True)

    def asc(self) -> OrderTerm:
        return OrderTerm(self)

    # rendering

    def select_sql(self, renderer: SqlRenderer) -> str:
        """Render as a select-list term.

        Encrypted name references are decrypted through the encryptor and
        aliased back to their output name.
        """
        match self.holding:
            case NameReference():
                ref = self.qualified_name
                if self.decrypts_in_select:
                    expr = renderer.require_encryptor().decrypt_field(ref)
                    return f'{expr} as {self.output_name}'
                return f'{ref} as {self.alias}' if self.alias else ref
            case _:
                expr = renderer.render(self.node())
                return f'{expr} as {self.output_name}' if self.output_name else expr


# text


class TextColumn(TypedColumn):
    encrypts_comparands: ClassVar[bool] = True

    @classmethod
    def coerce(cls, value: Any) -> Any:
        return literal_text(value)

    def is_empty(self) -> Condition:
        return Condition(BinaryOp(self.node(), '=', Literal('', LiteralKind.TEXT)))

    def is_not_empty(self) -> Condition:
        return Condition(BinaryOp(self.node(), '!=', Literal('', LiteralKind.TEXT)))


@dataclass(frozen=True)
class Varchar(TextColumn):
    pass


@dataclass(frozen=True)
class Char(TextColumn):
    pass


@dataclass(frozen=True)
class Text(TextColumn):
    pass


@dataclass(frozen=True)
class Json(TextColumn):
    semantic: ClassVar[SemanticType] = SemanticType.JSON

    @classmethod
    def coerce(cls, value: Any) -> Any:
        if isinstance(value, dict | list):
            return json.dumps(value)
        return literal_text(value)


# numeric


class IntegerColumn(TypedColumn):
    literal_kind: ClassVar[LiteralKind] = LiteralKind.NUMBER

    @classmethod
    def coerce(cls, value: Any) -> Any:
        if isinstance(value, enum.Enum):
            value = value.value
        return int(value)


@dataclass(frozen=True)
class Tinyint(IntegerColumn):
    semantic: ClassVar[SemanticType] = SemanticType.INTEGER8


@dataclass(frozen=True)
class Smallint(IntegerColumn):
    semantic: ClassVar[SemanticType] = SemanticType.INTEGER16


@dataclass(frozen=True)
class Int(IntegerColumn):
    semantic: ClassVar[SemanticType] = SemanticType.INTEGER32


@dataclass(frozen=True)
class Bigint(IntegerColumn):
    semantic: ClassVar[SemanticType] = SemanticType.INTEGER64


@dataclass(frozen=True)
class BigintUnsigned(IntegerColumn):
    semantic: ClassVar[SemanticType] = SemanticType.UNSIGNED_INTEGER64

    @classmethod
    def coerce(cls, value: Any) -> Any:
        value = super().coerce(value)
        if value < 0:
            raise ValueError(f'unsigned column cannot hold {value}')
        return value


@dataclass(frozen=True)
class Year(IntegerColumn):
    semantic: ClassVar[SemanticType] = SemanticType.INTEGER32


class FloatColumn(TypedColumn):
    literal_kind: ClassVar[LiteralKind] = LiteralKind.NUMBER
    semantic: ClassVar[SemanticType] = SemanticType.FLOAT64

    @classmethod
    def coerce(cls, value: Any) -> Any:
        return float(value)


@dataclass(frozen=True)
class Float(FloatColumn):
    semantic: ClassVar[SemanticType] = SemanticType.FLOAT32


@dataclass(frozen=True)
class Double(FloatColumn):
    pass


@dataclass(frozen=True)
class Decimal(FloatColumn):

    @classmethod
    def coerce(cls, value: Any) -> Any:
        if isinstance(value, decimal.Decimal):
            return value
        return decimal.Decimal(str(value))


@dataclass(frozen=True)
class Boolean(TypedColumn):
    """Boolean column; literals render as the dialect's boolean (`1`/`0` on MySQL).
    """
    semantic: ClassVar[SemanticType] = SemanticType.BOOLEAN
    literal_kind: ClassVar[LiteralKind] = LiteralKind.BOOLEAN

    @classmethod
    def coerce(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() in {'1', 'true', 't', 'yes', 'y'}
        return bool(value)

    def is_true(self) -> Condition:
        return self.equal(True)

    def is_false(self) -> Condition:
        return self.equal(False)


# enumerations


@dataclass(frozen=True)
class Enum(TypedColumn, Generic[E]):
    """Single-valued enumeration column.

    String comparands are validated against `enum_type` when one is set.
    """
    enum_type: type[E] | None = None

    semantic: ClassVar[SemanticType] = SemanticType.ENUMERATION

    def _coerce(self, value: Any) -> Any:
        if value is None or self.enum_type is None or isinstance(value, self.enum_type):
            return value
        return self.enum_type(value)


@dataclass(frozen=True)
class Set(TypedColumn, Generic[E]):
    """Multi-valued set column stored as comma-separated labels.
    """
    enum_type: type[E] | None = None

    semantic: ClassVar[SemanticType] = SemanticType.MULTI_VALUE_SET

    def _coerce(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            value = [v for v in value.split(',') if v]
        elif isinstance(value, enum.Enum):
            value = [value]
        if self.enum_type is None:
            return list(value)
        return [v if isinstance(v, self.enum_type) else self.enum_type(v) for v in value]

    def find_in_set(self, value: Any) -> Condition:
        """Whether the stored set contains `value`."""
        if self.enum_type is not None and not isinstance(value, self.enum_type):
            value = self.enum_type(value)
        return Condition(FindInSet(Literal(literal_text(value), LiteralKind.TEXT), self.node()))

    contains = find_in_set


# temporal


class TemporalColumn(TypedColumn):

    def add(self, amount: int, unit: DateUnit | str = DateUnit.DAY) -> Self:
        """Date arithmetic; the result compares like any other column.

        >>> Date.with_name('created_on').add(-7).less_than('2024-01-31').render()
        "DATE_ADD(created_on, INTERVAL -7 DAY) < '2024-01-31'"
        """
        unit = DateUnit(unit.upper() if isinstance(unit, str) else unit)
        return replace(self, holding=Computed(DateAdd(self.node(), int(amount), unit.value)))


@dataclass(frozen=True)
class Date(TemporalColumn):
    semantic: ClassVar[SemanticType] = SemanticType.DATE

    @classmethod
    def coerce(cls, value: Any) -> Any:
        if isinstance(value, datetime.datetime):
            return value.date()
        return value


@dataclass(frozen=True)
class Time(TemporalColumn):
    semantic: ClassVar[SemanticType] = SemanticType.TIME


@dataclass(frozen=True)
class Datetime(TemporalColumn):
    semantic: ClassVar[SemanticType] = SemanticType.DATETIME


@dataclass(frozen=True)
class Timestamp(TemporalColumn):
    semantic: ClassVar[SemanticType] = SemanticType.TIMESTAMP


@dataclass(frozen=True)
class Blob(TypedColumn):
    semantic: ClassVar[SemanticType] = SemanticType.BINARY
    literal_kind: ClassVar[LiteralKind] = LiteralKind.BINARY

    @classmethod
    def coerce(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.encode()
        return bytes(value)


COLUMN_TYPES: dict[str, type[TypedColumn]] = {
    cls.__name__: cls
    for cls in (Varchar, Char, Text, Json, Tinyint, Smallint, Int, Bigint,
                BigintUnsigned, Year, Float, Double, Decimal, Boolean, Enum,
                Set, Date, Time, Datetime, Timestamp, Blob)
}
