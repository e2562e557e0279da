"""
Statement builder.

A `QueryBuilder` records one operation (select, insert, update, upsert or
delete), its target table, fields, values, conditions, ordering and
limits. Every chained call returns a new builder; `build()` renders the
same text each time it is called.

    >>> from tablekit.query.columns import Int
    >>> q = select('id', 'name').from_('product').where_(Int.with_name('id').gt(5)).limit(10)
    >>> q.build()
    'select id, name from product where id > 5 limit 10'

Rendering follows a few rules:

- keywords are lower case and predicate operators upper case
- successive `where_` calls are combined with AND
- text literals are single-quoted with embedded quotes doubled
- identifiers are not quoted
"""
import enum
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

import pandas as pd
from tablekit.exceptions import BuildErrorKind, QueryBuildError
from tablekit.naming import to_camel
from tablekit.paging import PagingData
from tablekit.processing import ProcessorRegistry
from tablekit.query.columns import OrderTerm, TypedColumn
from tablekit.query.condition import Condition
from tablekit.query.expression import SqlRenderer
from tablekit.query.table import Table, as_table

from libb import attrdict, collapse

if TYPE_CHECKING:
    from tablekit.context import QueryContext
    from tablekit.record import Record

logger = logging.getLogger(__name__)

__all__ = [
    'Operation',
    'QueryBuilder',
    'select',
    'insert_into',
    'update',
    'upsert',
    'insert_or_update',
    'delete_from',
]


class Operation(enum.Enum):
    SELECT = 'select'
    INSERT = 'insert'
    UPDATE = 'update'
    UPSERT = 'upsert'
    DELETE = 'delete'


_WRITES = {Operation.INSERT, Operation.UPDATE, Operation.UPSERT}


def _as_field(field: TypedColumn | str) -> TypedColumn:
    if isinstance(field, TypedColumn):
        return field
    return TypedColumn.with_name(str(field))


def _as_order(term: OrderTerm | TypedColumn | str) -> OrderTerm:
    if isinstance(term, OrderTerm):
        return term
    return OrderTerm(_as_field(term))


@dataclass(frozen=True)
class QueryBuilder:
    """Immutable statement description.

    Use the module-level entry points (`select`, `insert_into`, `update`,
    `upsert`, `delete_from`) rather than constructing this directly.
    """
    operation: Operation | None = None
    table: Table | None = None
    fields: tuple[TypedColumn, ...] = ()
    assignments: tuple[TypedColumn, ...] = ()
    condition: Condition | None = None
    ordering: tuple[OrderTerm, ...] = ()
    row_limit: int | None = None
    row_offset: int | None = None

    # chaining

    def from_(self, table: Table | type[Table] | str) -> 'QueryBuilder':
        return replace(self, table=as_table(table))

    def where_(self, condition: Condition | str) -> 'QueryBuilder':
        """Add a condition, AND-ed with any earlier ones."""
        if isinstance(condition, str):
            condition = Condition.text(condition)
        if self.condition is not None:
            condition = self.condition.and_(condition)
        return replace(self, condition=condition)

    def values(self, *columns: TypedColumn) -> 'QueryBuilder':
        """Columns carrying the values to write; lists are flattened."""
        return replace(self, assignments=self.assignments + tuple(collapse(columns)))

    set_ = values

    def order_by(self, *terms: OrderTerm | TypedColumn | str) -> 'QueryBuilder':
        return replace(self, ordering=self.ordering + tuple(_as_order(t) for t in collapse(terms)))

    def limit(self, limit: int) -> 'QueryBuilder':
        return replace(self, row_limit=limit)

    def offset(self, offset: int) -> 'QueryBuilder':
        return replace(self, row_offset=offset)

    # validation

    def value_columns(self) -> tuple[TypedColumn, ...]:
        """Explicit values, or the valued columns of a mapping built from a record."""
        if self.assignments:
            return self.assignments
        if self.table is not None:
            return tuple(self.table._value_columns())
        return ()

    def validate(self, dialect: str = 'mysql') -> QueryBuildError | None:
        """Check the minimum state for the operation.

        Returns
            The first failure found, or None when the statement can be built
        """
        def fail(kind, message):
            return QueryBuildError(kind, message)

        op = self.operation
        if op is None:
            return fail(BuildErrorKind.MISSING_OPERATION, 'no operation given')
        if op is Operation.SELECT and not self.fields:
            return fail(BuildErrorKind.MISSING_FIELDS, 'select needs at least one field')
        if self.table is None:
            return fail(BuildErrorKind.MISSING_TARGET_TABLE, f'{op.value} needs a target table')
        if op in {Operation.UPDATE, Operation.DELETE} and self.condition is None:
            return fail(BuildErrorKind.MISSING_CONDITION, f'{op.value} needs at least one condition')
        if op in _WRITES:
            columns = self.value_columns()
            if not columns:
                return fail(BuildErrorKind.MISSING_VALUES, f'{op.value} needs at least one value')
            for column in columns:
                if not column.holds_value or not column.name:
                    return fail(BuildErrorKind.OTHER_ERROR,
                                f'{column.name or "unnamed column"} does not carry a value to write')
        if self.row_limit is not None:
            if op is not Operation.SELECT:
                return fail(BuildErrorKind.OTHER_ERROR, f'limit is not supported for {op.value}')
            if self.row_limit < 0:
                return fail(BuildErrorKind.OTHER_ERROR, f'limit must not be negative: {self.row_limit}')
        if self.row_offset is not None:
            if self.row_limit is None:
                return fail(BuildErrorKind.OTHER_ERROR, 'offset requires a limit')
            if self.row_offset < 0:
                return fail(BuildErrorKind.OTHER_ERROR, f'offset must not be negative: {self.row_offset}')
        if op is Operation.UPSERT and dialect != 'mysql' and not self.table._primary_key():
            return fail(BuildErrorKind.OTHER_ERROR,
                        f'upsert into {self.table._name()} needs a primary key on {dialect}')
        return None

    # rendering

    def _renderer(self, context: 'QueryContext | None', dialect: str | None) -> SqlRenderer:
        if context is not None:
            return context.renderer()
        return SqlRenderer(dialect or 'mysql')

    def build(self, context: 'QueryContext | None' = None, *, dialect: str | None = None,
              renderer: SqlRenderer | None = None) -> str:
        """Render the statement.

        Args:
            context: Supplies dialect, encryptor and processors
            dialect: Dialect to render for when no context is given
            renderer: Renderer to use as is (nested selects)

        Raises
            QueryBuildError: the statement is incomplete
        """
        renderer = renderer or self._renderer(context, dialect)
        error = self.validate(renderer.dialect)
        if error is not None:
            raise error
        processors = context.processors if context is not None else ProcessorRegistry()
        match self.operation:
            case Operation.SELECT:
                sql = self._select_sql(renderer)
            case Operation.INSERT:
                columns, values = self._write_values(renderer, processors)
                sql = renderer.strategy.build_insert_sql(self.table._name(), columns, values)
            case Operation.UPSERT:
                columns, values = self._write_values(renderer, processors)
                sql = renderer.strategy.build_upsert_sql(
                    self.table._name(), columns, values, self.table._primary_key())
            case Operation.UPDATE:
                columns, values = self._write_values(renderer, processors)
                sets = ', '.join(f'{c} = {v}' for c, v in zip(columns, values))
                sql = f'update {self.table._name()} set {sets}{self._where_sql(renderer)}'
            case Operation.DELETE:
                sql = f'delete from {self.table._name()}{self._where_sql(renderer)}'
        return sql

    def _where_sql(self, renderer: SqlRenderer) -> str:
        if self.condition is None:
            return ''
        return f' where {self.condition.render(renderer=renderer)}'

    def _select_sql(self, renderer: SqlRenderer) -> str:
        fields = ', '.join(f.select_sql(renderer) for f in self.fields)
        sql = f'select {fields} from {self.table._name()}{self._where_sql(renderer)}'
        if self.ordering:
            sql += ' order by ' + ', '.join(t.render(renderer) for t in self.ordering)
        if self.row_limit is not None:
            sql += f' limit {self.row_limit}'
        if self.row_offset is not None:
            sql += f' offset {self.row_offset}'
        return sql

    def _write_values(self, renderer: SqlRenderer,
                      processors: ProcessorRegistry) -> tuple[list[str], list[str]]:
        columns, values = [], []
        for column in self.value_columns():
            value = processors.before_save(self.table._name(), column.name, column.value)
            columns.append(column.name)
            values.append(renderer.render(column.value_node(value)))
        return columns, values

    def count_sql(self, renderer: SqlRenderer) -> str:
        """`count(*)` over the same table and conditions."""
        return f'select count(*) as total from {self.table._name()}{self._where_sql(renderer)}'

    def __str__(self):
        return self.build()

    # execution

    def _decrypted_outputs(self) -> frozenset[str]:
        """Output columns the select list already decrypts."""
        return frozenset(f.output_name for f in self.fields if f.decrypts_in_select)

    def _convert(self, row: dict[str, Any], processors: ProcessorRegistry,
                 into: type['Record'] | None, skip: frozenset[str] = frozenset()) -> Any:
        row = processors.after_fetch_row(self.table._name(), row, skip)
        payload = attrdict()
        for key, value in row.items():
            payload[key] = value
            payload.setdefault(to_camel(key), value)
        if into is None:
            return payload
        return into.from_dict(payload)

    def execute(self, context: 'QueryContext') -> int:
        """Run the statement and return the affected row count."""
        return context.driver.execute(self.build(context))

    def fetch(self, context: 'QueryContext', into: type['Record'] | None = None) -> list[Any]:
        """Run a select and return rows.

        Rows are attrdicts keyed by both the raw column name and its camel
        case form, or `into` records when a record type is given.
        """
        rows = context.driver.fetch(self.build(context))
        processors = context.processors
        skip = self._decrypted_outputs()
        return [self._convert(row, processors, into, skip) for row in rows]

    def fetch_one(self, context: 'QueryContext', into: type['Record'] | None = None) -> Any | None:
        """First row of the select, forcing `limit 1`."""
        rows = replace(self, row_limit=1, row_offset=None).fetch(context, into)
        return rows[0] if rows else None

    def fetch_page(self, context: 'QueryContext', page: int, page_size: int,
                   into: type['Record'] | None = None) -> PagingData:
        """One page of rows plus the total row count.

        Args:
            page: 1-based page number
            page_size: Rows per page
        """
        if page < 1 or page_size < 1:
            raise ValueError(f'page and page_size must be positive: {page}, {page_size}')
        error = self.validate(context.dialect)
        if error is not None:
            raise error
        counted = context.driver.fetch(self.count_sql(context.renderer()))
        total = int(next(iter(counted[0].values()))) if counted else 0
        paged = replace(self, row_limit=page_size, row_offset=(page - 1) * page_size)
        data = paged.fetch(context, into)
        logger.debug(f'Fetched page {page} ({len(data)} of {total} rows) from {self.table._name()}')
        return PagingData(data=data, current_page=page, page_size=page_size, total_count=total)

    def fetch_frame(self, context: 'QueryContext') -> pd.DataFrame:
        """Run a select and return a DataFrame with processed columns."""
        frame = context.driver.fetch_frame(self.build(context))
        processors = context.processors
        table = self.table._name()
        skip = self._decrypted_outputs()
        for column in frame.columns:
            if column not in skip and processors.processors_for(table, column):
                frame[column] = frame[column].map(
                    lambda v, c=column: processors.after_fetch(table, c, v))
        return frame


def select(*fields: TypedColumn | str) -> QueryBuilder:
    """Start a select; fields may be columns, names, or lists of either."""
    return QueryBuilder(Operation.SELECT, fields=tuple(_as_field(f) for f in collapse(fields)))


def insert_into(table: Table | type[Table] | str) -> QueryBuilder:
    return QueryBuilder(Operation.INSERT, table=as_table(table))


def update(table: Table | type[Table] | str) -> QueryBuilder:
    return QueryBuilder(Operation.UPDATE, table=as_table(table))


def upsert(table: Table | type[Table] | str) -> QueryBuilder:
    """Insert, or update the non-key columns when the primary key exists."""
    return QueryBuilder(Operation.UPSERT, table=as_table(table))


insert_or_update = upsert


def delete_from(table: Table | type[Table] | str) -> QueryBuilder:
    return QueryBuilder(Operation.DELETE, table=as_table(table))
