"""
Table descriptors.

Generated table mappings derive from `Table` and list one `ColumnSpec`
per column. An instance exposes each column as an attribute: a
name-reference column, or a name-plus-value column when built from a
record whose field is set.
"""
from dataclasses import dataclass
from typing import Any, ClassVar, Self

from tablekit.query.columns import TypedColumn
from tablekit.record import LabeledEnum, Record

__all__ = ['ColumnSpec', 'Table', 'as_table']


@dataclass(frozen=True)
class ColumnSpec:
    """Static description of one mapped column.

    Args:
        attribute: Python attribute (and record field) name
        wire: Column name in the database
        column_type: TypedColumn subclass for the column's semantic type
        enum_type: Generated enumeration for Enum/Set columns
        encrypted: Comparisons and select lists go through the encryptor
        primary_key: Part of the table's primary key
    """
    attribute: str
    wire: str
    column_type: type[TypedColumn]
    enum_type: type[LabeledEnum] | None = None
    encrypted: bool = False
    primary_key: bool = False

    def build(self, table: str | None = None, value: Any = None) -> TypedColumn:
        kw: dict[str, Any] = {'table': table, 'is_encrypted': self.encrypted}
        if self.enum_type is not None:
            kw['enum_type'] = self.enum_type
        if value is None:
            return self.column_type.with_name(self.wire, **kw)
        return self.column_type.with_name_value(self.wire, value, **kw)


class Table:
    """Base for table mappings.

    Column attributes are set on the instance, so the descriptor methods
    carry a leading underscore (as namedtuple's do) and never collide with
    a column called `name` or `columns`.

    A bare instance, `Table(name='product')`, describes a table known only
    by name.
    """
    table_name: ClassVar[str] = ''
    record_type: ClassVar[type[Record] | None] = None
    __columns__: ClassVar[tuple[ColumnSpec, ...]] = ()

    def __init__(self, record: Record | None = None, qualified: bool = False, *,
                 name: str | None = None, primary_key: list[str] | None = None):
        table = name or type(self).table_name
        if not table:
            raise ValueError(f'{type(self).__name__} needs a table name')
        if primary_key is None:
            primary_key = [s.wire for s in self.__columns__ if s.primary_key]
        self._table = table
        self._keys = list(primary_key)
        self._qualified = qualified
        qualifier = table if qualified else None
        for spec in self.__columns__:
            value = getattr(record, spec.attribute, None) if record is not None else None
            setattr(self, spec.attribute, spec.build(qualifier, value))

    @classmethod
    def from_record(cls, record: Record, qualified: bool = False) -> Self:
        """Mapping whose columns carry the record's non-null values."""
        return cls(record, qualified=qualified)

    def _name(self) -> str:
        return self._table

    def _columns(self) -> list[TypedColumn]:
        """Every mapped column in declaration order."""
        return [getattr(self, s.attribute) for s in self.__columns__]

    def _primary_key(self) -> list[str]:
        return list(self._keys)

    def _value_columns(self) -> list[TypedColumn]:
        """Columns carrying a value to write."""
        return [c for c in self._columns() if c.holds_value]

    def _column(self, wire: str) -> TypedColumn:
        for spec in self.__columns__:
            if spec.wire == wire:
                return getattr(self, spec.attribute)
        raise KeyError(f'{self._table} has no column {wire}')

    def __str__(self):
        return self._table

    def __repr__(self):
        return f'{type(self).__name__}({self._table!r})'


def as_table(table: Table | type[Table] | str) -> Table:
    """Normalize a mapping instance, mapping class or bare name."""
    if isinstance(table, Table):
        return table
    if isinstance(table, type) and issubclass(table, Table):
        return table()
    return Table(name=str(table))
