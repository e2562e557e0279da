"""
Expression tree for conditions and select terms.

Column operations build immutable nodes; text is produced only by
`SqlRenderer`, which knows the dialect and the encryptor. Literal text is
quoted with embedded quotes doubled (and backslashes doubled on MySQL);
no parameters are bound.
"""
import datetime
import decimal
import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tablekit.exceptions import ConfigurationError
from tablekit.strategy import DialectStrategy, get_strategy

if TYPE_CHECKING:
    from tablekit.processing import Encryptor
    from tablekit.query.builder import QueryBuilder

logger = logging.getLogger(__name__)

__all__ = [
    'LiteralKind',
    'Node',
    'ColumnRef',
    'Literal',
    'SubQuery',
    'RawSql',
    'BinaryOp',
    'PostfixOp',
    'InList',
    'Between',
    'DateAdd',
    'FindInSet',
    'Junction',
    'SqlRenderer',
    'literal_text',
]


class LiteralKind(enum.Enum):
    TEXT = 'text'
    NUMBER = 'number'
    BOOLEAN = 'boolean'
    BINARY = 'binary'


@dataclass(frozen=True)
class ColumnRef:
    name: str
    table: str | None = None

    @property
    def qualified_name(self) -> str:
        return f'{self.table}.{self.name}' if self.table else self.name


@dataclass(frozen=True)
class Literal:
    value: Any
    kind: LiteralKind = LiteralKind.TEXT
    encrypt: bool = False


@dataclass(frozen=True)
class SubQuery:
    query: 'QueryBuilder'


@dataclass(frozen=True)
class RawSql:
    sql: str


@dataclass(frozen=True)
class BinaryOp:
    left: 'Node'
    op: str
    right: 'Node'


@dataclass(frozen=True)
class PostfixOp:
    operand: 'Node'
    op: str


@dataclass(frozen=True)
class InList:
    operand: 'Node'
    items: tuple['Node', ...] | SubQuery
    negated: bool = False


@dataclass(frozen=True)
class Between:
    operand: 'Node'
    low: 'Node'
    high: 'Node'


@dataclass(frozen=True)
class DateAdd:
    operand: 'Node'
    amount: int
    unit: str


@dataclass(frozen=True)
class FindInSet:
    value: 'Node'
    column: 'Node'


@dataclass(frozen=True)
class Junction:
    op: str
    left: 'Node'
    right: 'Node'


Node = (ColumnRef | Literal | SubQuery | RawSql | BinaryOp | PostfixOp | InList
        | Between | DateAdd | FindInSet | Junction)


def literal_text(value: Any) -> str:
    """Text form of a value stored in a text-shaped column.

    Enumerations store their label, sets the comma-joined labels and
    temporal values their ISO form with a space separator.
    """
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, list | tuple | set | frozenset):
        return ','.join(literal_text(v) for v in value)
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=' ')
    if isinstance(value, datetime.date | datetime.time):
        return value.isoformat()
    if isinstance(value, bool):
        return '1' if value else '0'
    return str(value)


def _number_text(value: Any) -> str:
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, int | decimal.Decimal):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    return str(decimal.Decimal(str(value)))


class SqlRenderer:
    """Render expression nodes for one dialect.
    """

    def __init__(self, strategy: DialectStrategy | str = 'mysql',
                 encryptor: 'Encryptor | None' = None):
        if isinstance(strategy, str):
            strategy = get_strategy(strategy)
        self.strategy = strategy
        self.encryptor = encryptor

    @property
    def dialect(self) -> str:
        return self.strategy.dialect_name

    def require_encryptor(self) -> 'Encryptor':
        if self.encryptor is None:
            raise ConfigurationError('An encryptor is required to render encrypted columns')
        return self.encryptor

    def literal(self, node: Literal) -> str:
        value = node.value
        if value is None:
            return 'NULL'
        match node.kind:
            case LiteralKind.BOOLEAN:
                return self.strategy.boolean_literal(bool(value))
            case LiteralKind.NUMBER:
                return _number_text(value)
            case LiteralKind.BINARY:
                return self.strategy.binary_literal(value)
        text = literal_text(value)
        if node.encrypt:
            text = self.require_encryptor().encrypt(text)
        return self.strategy.quote_literal(text)

    def render(self, node: Node) -> str:
        """Render a node to SQL text.
        """
        match node:
            case ColumnRef():
                return node.qualified_name
            case Literal():
                return self.literal(node)
            case SubQuery():
                return f'({node.query.build(renderer=self)})'
            case RawSql():
                return node.sql
            case BinaryOp():
                return f'{self.render(node.left)} {node.op} {self.render(node.right)}'
            case PostfixOp():
                return f'{self.render(node.operand)} {node.op}'
            case InList():
                op = 'NOT IN' if node.negated else 'IN'
                if isinstance(node.items, SubQuery):
                    return f'{self.render(node.operand)} {op} {self.render(node.items)}'
                items = ', '.join(self.render(i) for i in node.items)
                return f'{self.render(node.operand)} {op} ({items})'
            case Between():
                return (f'{self.render(node.operand)} BETWEEN {self.render(node.low)} '
                        f'AND {self.render(node.high)}')
            case DateAdd():
                return self.strategy.render_date_add(self.render(node.operand), node.amount, node.unit)
            case FindInSet():
                return self.strategy.render_find_in_set(self.render(node.value), self.render(node.column))
            case Junction():
                return f'({self.render(node.left)}) {node.op} ({self.render(node.right)})'
        raise TypeError(f'Cannot render {type(node).__name__}')
