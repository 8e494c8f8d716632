"""
Reconciliation engine.

Compares a source dataset with a target dataset under their table specs and
classifies every row:

- insert: source rows whose key is absent from the target
- update: source rows whose key is on the target and that are newer
- equalized: source rows whose key is on the target and that are not newer
- delete: target rows whose key is absent from the source

Each output keeps the declared columns of the side it comes from and is
rendered in that side's original format (row-oriented or columnar).
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

from opentelemetry import trace

from equalizer.exceptions import NoDataToReconcileError
from equalizer.metrics import EQUALIZER_RUN_TIME, EQUALIZER_RUNS, ROWS_CLASSIFIED
from equalizer.partition import build_partition_map, match_partitions, merge_hashes
from equalizer.specs import TableSpec, equalizable
from equalizer.transposer import (
    TableFormat,
    convert,
    empty_table,
    is_empty,
    project,
    render,
    require_format,
    row_count,
    to_canonical,
)
from utils.tracing import add_span_attributes, trace_operation

logger = logging.getLogger(__name__)


@dataclass
class EqualizeResult:
    """The four classified datasets produced by one reconciliation."""

    insert_data: Any
    update_data: Any
    delete_data: Any
    equalized_data: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "insert": self.insert_data,
            "update": self.update_data,
            "delete": self.delete_data,
            "equalized": self.equalized_data,
        }

    def counts(self) -> dict[str, int]:
        """Row count of every output, keyed like to_dict()."""
        return {name: _dataset_rows(data) for name, data in self.to_dict().items()}


def _dataset_rows(data: Any) -> int:
    if isinstance(data, list):
        return len(data)
    if isinstance(data, dict):
        return row_count(data)
    return 0


def reconcile(
    source_spec: TableSpec,
    target_spec: TableSpec,
    source_raw: Any,
    target_raw: Any,
    max_workers: int = 1,
) -> EqualizeResult:
    """
    Reconcile a source dataset against a target dataset.

    Args:
        source_spec: Spec of the source table
        target_spec: Spec of the target table
        source_raw: Source rows (list of objects) or columns (object of lists)
        target_raw: Target rows or columns
        max_workers: Worker threads used to match partitions (1 = sequential)

    Returns:
        EqualizeResult holding the insert, update, delete and equalized data

    Raises:
        IncompatibleSchemasError: If the specs cannot be reconciled
        NoDataToReconcileError: If both datasets are empty
        UnrecognizedFormatError: If a dataset is neither rows nor columns
        MalformedTableError: If a dataset's shape is inconsistent
        TypeMismatchError: If a value does not conform to its column type

    Example:
        >>> result = reconcile(source_spec, target_spec, source_rows, target_rows)
        >>> result.counts()
        {'insert': 1, 'update': 1, 'delete': 1, 'equalized': 1}
    """
    with trace_operation(
        "reconcile",
        kind=trace.SpanKind.INTERNAL,
        source_table=source_spec.name,
        target_table=target_spec.name,
        max_workers=max_workers,
    ):
        start_time = time.monotonic()
        try:
            with EQUALIZER_RUN_TIME.time():
                result = _reconcile(source_spec, target_spec, source_raw, target_raw, max_workers)
        except Exception:
            EQUALIZER_RUNS.labels(status="failed").inc()
            raise

        EQUALIZER_RUNS.labels(status="success").inc()
        counts = result.counts()
        for classification, count in counts.items():
            ROWS_CLASSIFIED.labels(classification=classification).inc(count)
        add_span_attributes(**{f"{name}_rows": count for name, count in counts.items()})

        logger.info(
            f"Reconciled '{source_spec.name}' -> '{target_spec.name}' "
            f"in {time.monotonic() - start_time:.3f}s: "
            f"insert={counts['insert']}, update={counts['update']}, "
            f"delete={counts['delete']}, equalized={counts['equalized']}"
        )
        return result


def _reconcile(
    source_spec: TableSpec,
    target_spec: TableSpec,
    source_raw: Any,
    target_raw: Any,
    max_workers: int,
) -> EqualizeResult:
    equalizable(source_spec, target_spec)

    source_empty = is_empty(source_raw)
    target_empty = is_empty(target_raw)
    if source_empty and target_empty:
        raise NoDataToReconcileError("both source and target datasets are empty")

    source_format = require_format(source_raw, "source data")
    target_format = require_format(target_raw, "target data")

    if target_empty:
        logger.info("Target dataset is empty, every source row is an insert")
        return EqualizeResult(
            insert_data=convert(source_spec, source_raw, target_format),
            update_data=empty_table(source_spec, target_format),
            delete_data=empty_table(target_spec, target_format),
            equalized_data=empty_table(source_spec, target_format),
        )

    if source_empty:
        logger.info("Source dataset is empty, every target row is a delete")
        return EqualizeResult(
            insert_data=empty_table(source_spec, source_format),
            update_data=empty_table(source_spec, source_format),
            delete_data=convert(target_spec, target_raw, source_format),
            equalized_data=empty_table(source_spec, source_format),
        )

    source_table = to_canonical(source_spec, source_raw, source_format)
    target_table = to_canonical(target_spec, target_raw, target_format)
    logger.debug(
        f"Canonical tables: source={row_count(source_table)} rows ({source_format.value}), "
        f"target={row_count(target_table)} rows ({target_format.value})"
    )

    source_map = build_partition_map(source_spec, source_table)
    target_map = build_partition_map(target_spec, target_table)
    hashes = merge_hashes(source_map, target_map)

    matched = match_partitions(
        source_spec, target_spec, source_table, target_table,
        source_map, target_map, hashes, max_workers=max_workers,
    )

    return EqualizeResult(
        insert_data=_output(source_spec, source_table, matched.insert, source_format),
        update_data=_output(source_spec, source_table, matched.update, source_format),
        delete_data=_output(target_spec, target_table, matched.delete, target_format),
        equalized_data=_output(source_spec, source_table, matched.equalized, source_format),
    )


def _output(spec: TableSpec, table: dict, indices: list[int], fmt: TableFormat) -> Any:
    return render(spec, project(spec, table, indices), fmt)

