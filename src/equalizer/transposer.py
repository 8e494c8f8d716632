"""
Row-oriented and columnar table formats.

Datasets arrive either as a list of row objects or as an object mapping each
column name to a list of values. The matching logic only works on the
columnar ("canonical") form; this module detects the incoming format and
converts between the two against a TableSpec.
"""

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any

from equalizer.exceptions import MalformedTableError, TypeMismatchError, UnrecognizedFormatError
from equalizer.specs import ColumnarTable, ColumnSpec, TableSpec

logger = logging.getLogger(__name__)

Rows = list[dict[str, Any]]


class TableFormat(Enum):
    """Top-level shape of a dataset."""

    ROW = "row"
    COLUMNAR = "columnar"
    NEITHER = "neither"


def detect_format(raw: Any) -> TableFormat:
    """Classify a dataset by its top-level JSON shape."""
    if isinstance(raw, list):
        return TableFormat.ROW
    if isinstance(raw, dict):
        return TableFormat.COLUMNAR
    return TableFormat.NEITHER


def require_format(raw: Any, side: str = "data") -> TableFormat:
    """
    Detect the format of a dataset that must be tabular.

    Raises:
        UnrecognizedFormatError: If the dataset is neither rows nor columns
    """
    fmt = detect_format(raw)
    if fmt is TableFormat.NEITHER:
        raise UnrecognizedFormatError(
            f"{side} is neither in row nor in columnar format: {type(raw).__name__}"
        )
    return fmt


def is_empty(raw: Any) -> bool:
    """
    Check whether a dataset has zero rows.

    An empty list, an empty object and an object whose columns are all empty
    lists are empty. Non-tabular values are not empty; they are rejected by
    format detection instead.
    """
    if isinstance(raw, list):
        return len(raw) == 0
    if isinstance(raw, dict):
        return all(isinstance(values, list) and not values for values in raw.values())
    return False


def row_count(table: ColumnarTable) -> int:
    """Row count of a canonical table, taken from its first column."""
    for values in table.values():
        return len(values)
    return 0


def check_row_counts(table: ColumnarTable) -> int:
    """
    Assert that every column of a canonical table has the same length.

    Returns:
        The row count

    Raises:
        MalformedTableError: On a length mismatch
    """
    count = row_count(table)
    for name, values in table.items():
        if len(values) != count:
            raise MalformedTableError(
                f"column '{name}' has {len(values)} rows, expected {count}"
            )
    return count


def rows_to_columns(spec: TableSpec, rows: Sequence[Any]) -> ColumnarTable:
    """
    Convert row-oriented data into a canonical table.

    Fields not declared in the spec are ignored. Declared columns missing
    from a row are backfilled with None. Every non-null value is checked
    against its column type and the first violation aborts the conversion.

    Args:
        spec: Table spec
        rows: List of row objects

    Returns:
        One list per declared column, in declared order

    Raises:
        MalformedTableError: If a row is not an object
        TypeMismatchError: If a value does not conform to its column type
    """
    result = spec.new_empty_columnar_table()
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise MalformedTableError(f"row {i} is not an object: {type(row).__name__}")
        for column in spec.columns:
            result[column.name].append(_conform(column, row.get(column.name), i))
    return result


def columns_to_rows(spec: TableSpec, table: ColumnarTable) -> Rows:
    """
    Convert a canonical table into row-oriented data.

    Every declared column is emitted in every row, in declared order; null
    slots and declared columns absent from the table become None.

    Raises:
        MalformedTableError: If the table's columns have different lengths
        TypeMismatchError: If a value does not conform to its column type
    """
    count = check_row_counts(table)
    rows = []
    for i in range(count):
        row = {}
        for column in spec.columns:
            values = table.get(column.name)
            row[column.name] = _conform(column, values[i], i) if values is not None else None
        rows.append(row)
    return rows


def ensure_columnar(raw: Any) -> ColumnarTable:
    """
    Accept columnar data as-is after checking its shape.

    Values are not checked against a spec here; see validate_columnar().

    Raises:
        MalformedTableError: If a column is not a list or lengths differ
    """
    if not isinstance(raw, dict):
        raise MalformedTableError(f"data is not in columnar format: {type(raw).__name__}")
    for name, values in raw.items():
        if not isinstance(values, list):
            raise MalformedTableError(f"data is not in columnar format: column '{name}' is not a list")
    check_row_counts(raw)
    return raw


def validate_columnar(spec: TableSpec, raw: Any) -> ColumnarTable:
    """
    Check a columnar dataset against a spec and normalize its values.

    Every non-null value of every declared column present in the data is
    checked, whichever path the data takes through reconciliation.
    Undeclared columns are kept as they are.

    Raises:
        MalformedTableError: If the shape is invalid
        TypeMismatchError: If a value does not conform to its column type
    """
    table = dict(ensure_columnar(raw))
    for column in spec.columns:
        values = table.get(column.name)
        if values is not None:
            table[column.name] = [_conform(column, value, i) for i, value in enumerate(values)]
    return table


def to_canonical(spec: TableSpec, raw: Any, fmt: TableFormat | None = None) -> ColumnarTable:
    """
    Normalize a dataset into canonical columnar form.

    Args:
        spec: Table spec
        raw: Row-oriented or columnar data
        fmt: Known format of raw (detected when omitted)

    Returns:
        Canonical columnar table
    """
    if fmt is None:
        fmt = require_format(raw)
    if fmt is TableFormat.ROW:
        return rows_to_columns(spec, raw)
    if fmt is TableFormat.COLUMNAR:
        return validate_columnar(spec, raw)
    raise UnrecognizedFormatError(f"cannot convert data in format '{fmt.value}'")


def from_canonical(spec: TableSpec, table: ColumnarTable) -> Rows:
    """Inverse of the row conversion: canonical table to a list of rows."""
    return columns_to_rows(spec, table)


def project(spec: TableSpec, table: ColumnarTable, indices: Sequence[int]) -> ColumnarTable:
    """
    Copy the given rows of a canonical table.

    The result holds every declared column of the spec in declared order;
    declared columns absent from the table are filled with None.
    """
    result = {}
    for column in spec.columns:
        values = table.get(column.name)
        if values is None:
            result[column.name] = [None] * len(indices)
        else:
            result[column.name] = [values[i] for i in indices]
    return result


def convert(spec: TableSpec, raw: Any, fmt: TableFormat) -> ColumnarTable | Rows:
    """
    Convert a dataset into the requested format.

    Args:
        spec: Table spec
        raw: Row-oriented or columnar data
        fmt: Requested output format

    Returns:
        Rows for TableFormat.ROW, a canonical table projected onto the
        declared columns for TableFormat.COLUMNAR
    """
    source_format = require_format(raw)
    table = to_canonical(spec, raw, source_format)
    if fmt is TableFormat.ROW:
        return from_canonical(spec, table)
    if fmt is TableFormat.COLUMNAR:
        return project(spec, table, range(row_count(table)))
    raise UnrecognizedFormatError(f"cannot convert data to format '{fmt.value}'")


def render(spec: TableSpec, table: ColumnarTable, fmt: TableFormat) -> ColumnarTable | Rows:
    """Render a canonical table that already holds the declared columns in the given format."""
    if fmt is TableFormat.ROW:
        return from_canonical(spec, table)
    return table


def empty_table(spec: TableSpec, fmt: TableFormat) -> ColumnarTable | Rows:
    """An empty dataset in the given format."""
    if fmt is TableFormat.ROW:
        return []
    return spec.new_empty_columnar_table()


def _conform(column: ColumnSpec, value: Any, row_index: int) -> Any:
    if value is None:
        return None
    if not column.is_valid_value(value):
        raise TypeMismatchError(
            f"value {value!r} on row index {row_index} does not conform "
            f"to column '{column.name}' type of '{column.type.value}'",
            row_index=row_index,
            column=column.name,
            expected_type=column.type.value,
            value=value,
        )
    return column.normalize(value)
