"""
Table and column specs.

Describes a table's columns, key columns and optional change control column,
validates values against declared column types and decides whether two specs
can be reconciled against each other.
"""

from .columns import ACCEPTED_KINDS, ColumnSpec, ColumnType, ValueKind, value_kind
from .tables import (
    ColumnarTable,
    TableSpec,
    equalizable,
    newer_than,
    read_spec_file,
    same_keys,
)

__all__ = [
    'ACCEPTED_KINDS',
    'ColumnSpec',
    'ColumnType',
    'ColumnarTable',
    'TableSpec',
    'ValueKind',
    'equalizable',
    'newer_than',
    'read_spec_file',
    'same_keys',
    'value_kind',
]
