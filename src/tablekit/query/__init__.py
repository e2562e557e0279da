"""
Typed columns, conditions and statement building.
"""
from tablekit.query.builder import Operation, QueryBuilder, delete_from
from tablekit.query.builder import insert_into, insert_or_update, select
from tablekit.query.builder import update, upsert
from tablekit.query.columns import COLUMN_TYPES, DateUnit, OrderTerm
from tablekit.query.columns import TypedColumn
from tablekit.query.condition import Condition
from tablekit.query.expression import SqlRenderer
from tablekit.query.table import ColumnSpec, Table

__all__ = [
    'Condition',
    'TypedColumn',
    'COLUMN_TYPES',
    'DateUnit',
    'OrderTerm',
    'Operation',
    'QueryBuilder',
    'SqlRenderer',
    'ColumnSpec',
    'Table',
    'select',
    'insert_into',
    'update',
    'upsert',
    'insert_or_update',
    'delete_from',
]
